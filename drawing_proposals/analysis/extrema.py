"""Swing high / swing low detection"""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from ..data.models import Candle
from ..metrics.volume import mean_volume


class ExtremumKind(str, Enum):
    PEAK = "peak"
    TROUGH = "trough"


@dataclass(frozen=True)
class Extremum:
    """A swing point: a candle's high (peak) or low (trough)"""
    index: int
    time: int
    value: float
    kind: ExtremumKind
    volume_weight: float = 1.0


def find_extrema(candles: Sequence[Candle], kind: ExtremumKind, window: int = 10,
                 volume_weighted: bool = True) -> list[Extremum]:
    """
    Find strict local extrema.

    Index ``i`` (``window <= i < len - window``) is a peak when its high is
    strictly greater than every other high in ``[i - window, i + window]``;
    troughs mirror this on lows. Plateaus therefore produce no extrema.

    Args:
        candles: Candles in chronological order
        kind: PEAK (highs) or TROUGH (lows)
        window: Bars compared on each side
        volume_weighted: Weight by ``volume / mean(volume)`` and sort by it

    Returns:
        Extrema sorted by weight descending when weighted (stable, so equal
        weights stay chronological), otherwise chronologically. Series
        shorter than ``2 * window + 1`` give an empty list.
    """
    n = len(candles)
    if window < 1 or n < 2 * window + 1:
        return []

    if kind is ExtremumKind.PEAK:
        values = [c.high for c in candles]
    else:
        values = [c.low for c in candles]

    avg_volume = mean_volume(candles)
    extrema = []

    for i in range(window, n - window):
        center = values[i]
        neighbours = values[i - window:i] + values[i + 1:i + window + 1]
        if kind is ExtremumKind.PEAK:
            is_extremum = all(center > v for v in neighbours)
        else:
            is_extremum = all(center < v for v in neighbours)

        if is_extremum:
            weight = candles[i].volume / avg_volume if avg_volume > 0 else 1.0
            extrema.append(Extremum(
                index=i,
                time=candles[i].time,
                value=center,
                kind=kind,
                volume_weight=weight,
            ))

    if volume_weighted:
        extrema.sort(key=lambda e: e.volume_weight, reverse=True)
    return extrema


def alternate_extrema(extrema: Sequence[Extremum]) -> list[Extremum]:
    """
    Merge peaks and troughs into a chronological zigzag.

    Consecutive extrema of the same kind are collapsed to the more extreme
    one, so the result strictly alternates between peaks and troughs.
    """
    pivots: list[Extremum] = []
    for point in sorted(extrema, key=lambda e: e.index):
        if pivots and pivots[-1].kind is point.kind:
            last = pivots[-1]
            if point.kind is ExtremumKind.PEAK:
                keep_new = point.value > last.value
            else:
                keep_new = point.value < last.value
            if keep_new:
                pivots[-1] = point
        else:
            pivots.append(point)
    return pivots


class ExtremaDetector:
    """Peak/trough detector with a fixed window"""

    def __init__(self, window: int = 10, volume_weighted: bool = True):
        self.window = window
        self.volume_weighted = volume_weighted

    def find_peaks(self, candles: Sequence[Candle]) -> list[Extremum]:
        return find_extrema(candles, ExtremumKind.PEAK, self.window, self.volume_weighted)

    def find_troughs(self, candles: Sequence[Candle]) -> list[Extremum]:
        return find_extrema(candles, ExtremumKind.TROUGH, self.window, self.volume_weighted)

    def find(self, candles: Sequence[Candle], field: str) -> list[Extremum]:
        """Extrema on ``field`` ('high' for peaks, 'low' for troughs)"""
        if field == "high":
            return self.find_peaks(candles)
        if field == "low":
            return self.find_troughs(candles)
        raise ValueError(f"field must be 'high' or 'low', got {field!r}")

    def alternating(self, candles: Sequence[Candle]) -> list[Extremum]:
        """Chronological alternating peaks and troughs"""
        return alternate_extrema(self.find_peaks(candles) + self.find_troughs(candles))
