"""Tolerance-based touch detection against lines and levels"""

import math
from collections.abc import Sequence
from typing import Optional

from ..data.models import Candle
from ..errors import ComputationError
from ..metrics.atr import ATRCalculator
from ..models.lines import DetectedLine, TouchPoint


def normalize_touch_count(count: int, saturation: int = 10) -> float:
    """Touch count mapped into [0, 1]; ``saturation`` touches score fully."""
    if count <= 0 or saturation <= 0:
        return 0.0
    return min(1.0, count / saturation)


class TouchDetector:
    """
    Locates candles whose range meets a line within an ATR-derived band.

    Tolerance is ``ATR(period) * multiplier``. A flat series has ATR 0, so
    the band collapses and only an exact intersection with the candle range
    counts as a touch.
    """

    def __init__(self, atr_period: int = 14, tolerance_multiplier: float = 0.5):
        self.atr = ATRCalculator(atr_period)
        self.tolerance_multiplier = tolerance_multiplier

    def tolerance(self, candles: Sequence[Candle]) -> float:
        return self.atr.calculate(candles) * self.tolerance_multiplier

    def detect(
        self,
        candles: Sequence[Candle],
        *,
        slope: Optional[float] = None,
        intercept: Optional[float] = None,
        price: Optional[float] = None,
        tolerance: Optional[float] = None,
        start_index: int = 0,
        end_index: Optional[int] = None,
    ) -> list[TouchPoint]:
        """
        Touches of a sloped line (``slope`` + ``intercept``) or a fixed ``price``.

        Args:
            candles: Candles in chronological order
            slope: Price change per second of a sloped line
            intercept: Price of a sloped line at time 0
            price: Level of a horizontal line
            tolerance: Band half-width; computed from ATR when omitted
            start_index: First candle examined
            end_index: One past the last candle examined

        Returns:
            Touch points in chronological order; ``value`` is the line price

        Raises:
            ComputationError: If the line is underspecified or projects to a
                non-finite price
        """
        if price is None and (slope is None or intercept is None):
            raise ComputationError("Touch detection needs a price or slope and intercept",
                                   operation="touch_detection")

        if tolerance is None:
            tolerance = self.tolerance(candles)

        stop = len(candles) if end_index is None else min(end_index, len(candles))
        touches = []

        for i in range(max(0, start_index), stop):
            candle = candles[i]
            projected = price if price is not None else slope * candle.time + intercept
            if not math.isfinite(projected):
                raise ComputationError("Line projects to a non-finite price",
                                       operation="touch_detection",
                                       calculation_input={"index": i})
            if candle.low - tolerance <= projected <= candle.high + tolerance:
                touches.append(TouchPoint(time=candle.time, value=projected, index=i))

        return touches

    def detect_line(self, candles: Sequence[Candle], line: DetectedLine,
                    tolerance: Optional[float] = None, start_index: int = 0) -> list[TouchPoint]:
        """Touches of a DetectedLine, horizontal or sloped"""
        if line.price is not None:
            return self.detect(candles, price=line.price, tolerance=tolerance, start_index=start_index)
        return self.detect(candles, slope=line.slope, intercept=line.intercept,
                           tolerance=tolerance, start_index=start_index)
