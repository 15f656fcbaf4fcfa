"""Tests for market regime classification"""

from drawing_proposals.analysis.market_condition import analyze_market_condition
from drawing_proposals.models.enums import Direction, MarketConditionType


class TestMarketCondition:
    """Test trending, ranging and volatile classification"""

    def test_trending_up(self, rising_candles):
        """A clean linear rise is a bullish trend"""
        condition = analyze_market_condition(rising_candles)

        assert condition.condition is MarketConditionType.TRENDING
        assert condition.direction is Direction.BULLISH
        assert condition.strength > 0.99
        assert "bullish trend" in condition.describe()

    def test_trending_down(self, falling_candles):
        """A clean linear fall is a bearish trend"""
        condition = analyze_market_condition(falling_candles)
        assert condition.condition is MarketConditionType.TRENDING
        assert condition.direction is Direction.BEARISH

    def test_flat_is_ranging(self, flat_candles):
        """No movement at all is a ranging market"""
        condition = analyze_market_condition(flat_candles)

        assert condition.condition is MarketConditionType.RANGING
        assert condition.direction is Direction.NEUTRAL
        assert condition.natr_pct == 0.0

    def test_volatile(self, candle_factory):
        """Wide candles relative to price are volatile"""
        candles = [candle_factory(i, 100.0, 106.0, 94.0, 100.0 + (i % 2)) for i in range(30)]
        condition = analyze_market_condition(candles)
        assert condition.condition is MarketConditionType.VOLATILE

    def test_too_short(self, candle_factory):
        """A single candle cannot be classified"""
        condition = analyze_market_condition([candle_factory(0, 100, 101, 99, 100)])
        assert condition.condition is MarketConditionType.RANGING
        assert condition.strength == 0.0
