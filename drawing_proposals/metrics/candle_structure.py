"""Candle anatomy: body, wicks and where the body sits in the range"""

from dataclasses import dataclass

from ..data.models import Candle


@dataclass(frozen=True)
class CandleStructure:
    """Body and wick lengths of one candle, in price units"""
    range: float
    body: float
    upper_wick: float
    lower_wick: float
    body_mid: float
    is_bull: bool
    is_bear: bool
    is_doji: bool

    @property
    def body_pct(self) -> float:
        """Body share of the range; 0.0 for a zero-range candle"""
        return self.body / self.range if self.range > 0 else 0.0


def analyze_candle_structure(candle: Candle, doji_threshold: float = 0.1) -> CandleStructure:
    """
    Measure a candle's body and wicks.

    A body shorter than ``doji_threshold`` of the range is a doji, and so is
    a candle with no range at all (open == high == low == close).
    """
    price_range = candle.high - candle.low
    body = abs(candle.close - candle.open)

    return CandleStructure(
        range=price_range,
        body=body,
        upper_wick=candle.high - max(candle.open, candle.close),
        lower_wick=min(candle.open, candle.close) - candle.low,
        body_mid=(candle.open + candle.close) / 2.0,
        is_bull=candle.close > candle.open,
        is_bear=candle.close < candle.open,
        is_doji=body < doji_threshold * price_range if price_range > 0 else True,
    )
