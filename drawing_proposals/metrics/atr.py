"""Volatility of a candle series: true range, ATR and NATR"""

from collections.abc import Sequence
from typing import Optional

from ..data.models import Candle


def calculate_true_range(current: Candle, previous: Optional[Candle] = None) -> float:
    """
    True range of ``current``, including any gap from the previous close.

    The first candle of a series has no previous close and uses high - low.
    """
    if previous is None:
        return current.high - current.low

    return max(
        current.high - current.low,
        abs(current.high - previous.close),
        abs(current.low - previous.close),
    )


def true_ranges(candles: Sequence[Candle]) -> list[float]:
    """True range of every candle in chronological order."""
    return [
        calculate_true_range(candle, candles[i - 1] if i > 0 else None)
        for i, candle in enumerate(candles)
    ]


def calculate_atr(candles: Sequence[Candle], period: int = 14) -> Optional[float]:
    """
    Simple average of the last ``period`` true ranges.

    Returns:
        ATR, or None when the series is shorter than ``period``
    """
    if len(candles) < period:
        return None

    recent = true_ranges(candles)[-period:]
    return sum(recent) / len(recent)


def calculate_natr(atr: float, current_price: float) -> float:
    """ATR as a percentage of ``current_price``; 0.0 for a non-positive price."""
    if current_price <= 0:
        return 0.0
    return 100.0 * atr / current_price


class ATRCalculator:
    """ATR over a candle series with a fallback for short series"""

    def __init__(self, period: int = 14):
        self.period = period

    def calculate(self, candles: Sequence[Candle]) -> float:
        """
        ATR of the series; shorter series use the mean true range available.

        Args:
            candles: Candles in chronological order

        Returns:
            ATR value, 0.0 for an empty series
        """
        if not candles:
            return 0.0

        atr = calculate_atr(candles, self.period)
        if atr is None:
            trs = true_ranges(candles)
            atr = sum(trs) / len(trs)
        return atr

    def calculate_natr(self, candles: Sequence[Candle]) -> Optional[float]:
        """
        NATR of the series using the last close

        Returns:
            NATR value or None for an empty series
        """
        if not candles:
            return None
        return calculate_natr(self.calculate(candles), candles[-1].close)
