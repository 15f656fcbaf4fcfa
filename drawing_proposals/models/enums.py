"""Shared enumerations"""

from enum import Enum


class Direction(str, Enum):
    """Market implication of a line, level or pattern"""
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


class TrendDirection(str, Enum):
    """Quarter-over-quarter trend of a candle series"""
    UP = "up"
    DOWN = "down"
    SIDEWAYS = "sideways"


class MarketConditionType(str, Enum):
    TRENDING = "trending"
    RANGING = "ranging"
    VOLATILE = "volatile"
