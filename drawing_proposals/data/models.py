"""
Canonical data models for normalized market data.

This module defines immutable data structures that represent clean, validated
candles after normalization from raw exchange formats.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Optional


@dataclass(frozen=True)
class Candle:
    """Normalized OHLCV candle keyed by its open time."""
    time: int          # Unix seconds, market open time of the bar
    open: float        # Opening price
    high: float        # High price
    low: float         # Low price
    close: float       # Closing price
    volume: float      # Base volume

    @property
    def ts(self) -> datetime:
        """Open time as an aware UTC datetime."""
        return datetime.fromtimestamp(self.time, tz=UTC)

    @property
    def is_bullish(self) -> bool:
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        return self.close < self.open


@dataclass(frozen=True)
class CandleParseResult:
    """Tagged result of parsing a single raw kline row."""

    candle: Optional[Candle] = None
    success: bool = True
    error_msg: Optional[str] = None
    error_type: Optional[str] = None

    @classmethod
    def ok(cls, candle: Candle) -> "CandleParseResult":
        """Create successful result with a parsed candle."""
        return cls(candle=candle, success=True)

    @classmethod
    def error(cls, error_msg: str, error_type: str = "ParseError") -> "CandleParseResult":
        """Create error result."""
        return cls(success=False, error_msg=error_msg, error_type=error_type)


@dataclass(frozen=True)
class NormalizationResult:
    """Result of normalizing a whole kline payload into a candle series."""

    candles: tuple[Candle, ...] = ()

    success: bool = True
    error_msg: Optional[str] = None

    # Rows removed while normalizing
    dropped_duplicates: int = 0
    reordered: bool = False

    @classmethod
    def success_with_candles(cls, candles: list[Candle], dropped_duplicates: int = 0,
                             reordered: bool = False) -> "NormalizationResult":
        """Create successful result with normalized candles."""
        return cls(
            candles=tuple(candles),
            success=True,
            dropped_duplicates=dropped_duplicates,
            reordered=reordered,
        )

    @classmethod
    def error(cls, error_msg: str) -> "NormalizationResult":
        """Create error result."""
        return cls(success=False, error_msg=error_msg)
