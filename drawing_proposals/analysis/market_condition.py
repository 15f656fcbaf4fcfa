"""Market regime classification: trending, ranging or volatile"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

from ..data.models import Candle
from ..errors import ComputationError
from ..metrics.atr import ATRCalculator
from ..models.enums import Direction, MarketConditionType
from .line_fit import fit_line

# NATR (percent) above which a market is treated as volatile
VOLATILE_NATR_PCT = 4.0
# Closes regression fit needed to call a market trending
TRENDING_R_SQUARED = 0.6
MIN_TREND_MOVE_PCT = 0.02


@dataclass(frozen=True)
class MarketCondition:
    condition: MarketConditionType
    strength: float                  # [0, 1]
    direction: Direction
    natr_pct: Optional[float] = None

    def describe(self) -> str:
        if self.condition is MarketConditionType.TRENDING:
            return f"{self.direction.value} trend (strength {self.strength:.2f})"
        return f"{self.condition.value} market (strength {self.strength:.2f})"


def analyze_market_condition(candles: Sequence[Candle], atr_period: int = 14) -> MarketCondition:
    """
    Classify the series.

    Volatile when NATR exceeds 4%; trending when closes fit a line with
    R² >= 0.6 and move at least 2% across the series; ranging otherwise.
    Series too short or degenerate to fit are reported as ranging.
    """
    if len(candles) < 2:
        return MarketCondition(MarketConditionType.RANGING, 0.0, Direction.NEUTRAL)

    natr = ATRCalculator(atr_period).calculate_natr(candles)

    try:
        fit = fit_line([(c.time, c.close) for c in candles])
    except ComputationError:
        return MarketCondition(MarketConditionType.RANGING, 0.0, Direction.NEUTRAL, natr)

    first, last = candles[0].close, candles[-1].close
    move = (last - first) / first
    direction = Direction.NEUTRAL
    if fit.slope > 0 and move > 0:
        direction = Direction.BULLISH
    elif fit.slope < 0 and move < 0:
        direction = Direction.BEARISH

    if natr is not None and natr > VOLATILE_NATR_PCT:
        strength = min(1.0, natr / (2 * VOLATILE_NATR_PCT))
        return MarketCondition(MarketConditionType.VOLATILE, strength, direction, natr)

    if fit.r_squared >= TRENDING_R_SQUARED and abs(move) >= MIN_TREND_MOVE_PCT and direction is not Direction.NEUTRAL:
        return MarketCondition(MarketConditionType.TRENDING, fit.r_squared, direction, natr)

    return MarketCondition(MarketConditionType.RANGING, 1.0 - fit.r_squared, Direction.NEUTRAL, natr)
