"""Weighted confidence scoring and priority assignment"""

import math
from dataclasses import dataclass
from typing import Optional

from ..config.defaults import PriorityParams, ScoringParams
from ..errors import ComputationError
from ..models.proposals import Priority


@dataclass(frozen=True)
class ConfidenceFactors:
    """Scoring inputs, each already normalized to [0, 1] by its producer"""
    touch_points: float
    volume_weight: float
    timeframe_confluence: float
    pattern_confirmation: float
    statistical_fit: float

    def as_dict(self) -> dict[str, float]:
        return {
            "touch_points": self.touch_points,
            "volume_weight": self.volume_weight,
            "timeframe_confluence": self.timeframe_confluence,
            "pattern_confirmation": self.pattern_confirmation,
            "statistical_fit": self.statistical_fit,
        }


class ConfidenceScorer:
    """
    Combines five factors into one confidence in [0, 1].

    confidence = 0.25 * touches + 0.20 * volume + 0.20 * confluence
               + 0.15 * pattern + 0.20 * fit

    Factors are not rescaled here; only weighted and the sum clamped.
    """

    def __init__(self, params: Optional[ScoringParams] = None):
        self.params = params or ScoringParams()

    def score(self, factors: ConfidenceFactors) -> float:
        """
        Weighted confidence.

        Raises:
            ComputationError: If any factor is NaN or infinite
        """
        values = factors.as_dict()
        bad = [name for name, value in values.items() if not math.isfinite(value)]
        if bad:
            raise ComputationError(f"Non-finite confidence factors: {bad}",
                                   operation="confidence_score", calculation_input=values)

        p = self.params
        total = (
            p.touch_weight * factors.touch_points
            + p.volume_weight * factors.volume_weight
            + p.confluence_weight * factors.timeframe_confluence
            + p.pattern_weight * factors.pattern_confirmation
            + p.fit_weight * factors.statistical_fit
        )
        return max(0.0, min(1.0, total))


def assign_priority(confidence: float, touches: Optional[int] = None,
                    params: Optional[PriorityParams] = None) -> Priority:
    """
    Priority from confidence and, for lines and levels, touch count.

    Proposals without a meaningful touch count (``touches=None``) are ranked
    on confidence alone.
    """
    p = params or PriorityParams()

    def enough(minimum: int) -> bool:
        return touches is None or touches >= minimum

    if confidence >= p.high_confidence and enough(p.high_min_touches):
        return Priority.HIGH
    if confidence >= p.medium_confidence and enough(p.medium_min_touches):
        return Priority.MEDIUM
    return Priority.LOW
