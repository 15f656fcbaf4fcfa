"""
Chart pattern detection from alternating swing points.

Every detector works on the zigzag of peaks and troughs produced by
``alternate_extrema`` and scores candidates with the same rule:

    confidence = 0.4 + 0.35 * (1 - symmetry_error) + 0.25 * min(1, touches / target)

capped at 0.95, where ``symmetry_error`` in [0, 1] measures how far the
geometry is from the textbook shape and ``touches`` counts candles that
confirm the pattern's lines.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

import structlog

from ..config.defaults import PatternParams
from ..data.models import Candle
from ..errors import ComputationError
from ..logging.config import log_candidate_dropped
from ..models.enums import Direction
from ..models.lines import LineFit
from ..models.patterns import ChartPattern, ChartPatternKind, KeyPoint, PatternMetrics
from ..utils.time import median_bar_seconds
from .extrema import Extremum, ExtremumKind, alternate_extrema, find_extrema
from .line_fit import fit_line
from .touches import TouchDetector

logger = structlog.get_logger(__name__)

MAX_PATTERN_CONFIDENCE = 0.95


def pattern_confidence(symmetry_error: float, touches: int, target_touches: int) -> float:
    """Shared confidence rule for chart patterns, see module docstring."""
    error = min(1.0, max(0.0, symmetry_error))
    touch_factor = min(1.0, touches / target_touches) if target_touches > 0 else 0.0
    return min(MAX_PATTERN_CONFIDENCE, 0.4 + 0.35 * (1.0 - error) + 0.25 * touch_factor)


@dataclass(frozen=True)
class _Geometry:
    """Per-call inputs shared by the individual pattern rules"""
    candles: Sequence[Candle]
    pivots: list[Extremum]
    tolerance: float
    atr: float
    bar_seconds: int


def _key_point(point: Extremum, role: str) -> KeyPoint:
    return KeyPoint(time=point.time, value=point.value, role=role, index=point.index)


class ChartPatternDetector:
    """Detects triangles, wedges, head-and-shoulders, double tops/bottoms and flags"""

    def __init__(self, params: Optional[PatternParams] = None,
                 touch_detector: Optional[TouchDetector] = None):
        self.params = params or PatternParams()
        self.touch_detector = touch_detector or TouchDetector()

    def detect(self, candles: Sequence[Candle],
               peaks: Optional[Sequence[Extremum]] = None,
               troughs: Optional[Sequence[Extremum]] = None) -> list[ChartPattern]:
        """
        Detect chart patterns in a candle series.

        Args:
            candles: Candles in chronological order
            peaks: Precomputed peaks; found with the pattern window if omitted
            troughs: Precomputed troughs; found with the pattern window if omitted

        Returns:
            Patterns sorted by confidence descending; overlapping detections
            of the same kind are reduced to the most confident one
        """
        w = self.params.extrema_window
        if peaks is None:
            peaks = find_extrema(candles, ExtremumKind.PEAK, w, volume_weighted=False)
        if troughs is None:
            troughs = find_extrema(candles, ExtremumKind.TROUGH, w, volume_weighted=False)

        pivots = alternate_extrema(list(peaks) + list(troughs))
        if len(pivots) < 2:
            return []

        geometry = _Geometry(
            candles=candles,
            pivots=pivots,
            tolerance=self.touch_detector.tolerance(candles),
            atr=self.touch_detector.atr.calculate(candles),
            bar_seconds=median_bar_seconds([c.time for c in candles]),
        )

        found: list[ChartPattern] = []
        found.extend(self._converging(geometry))
        found.extend(self._head_and_shoulders(geometry))
        found.extend(self._double_extremes(geometry))
        found.extend(self._flags(geometry))

        return self._select(found)

    def _select(self, patterns: list[ChartPattern]) -> list[ChartPattern]:
        ranked = sorted(patterns, key=lambda p: (-p.confidence, -(p.end_index - p.start_index), p.start_index))
        kept: list[ChartPattern] = []
        for pattern in ranked:
            overlaps = any(
                k.kind is pattern.kind
                and pattern.start_index <= k.end_index
                and k.start_index <= pattern.end_index
                for k in kept
            )
            if not overlaps:
                kept.append(pattern)
        return kept

    def _relative_slope(self, fit: LineFit, geometry: _Geometry, mean_price: float) -> float:
        """Slope as a fraction of price per bar"""
        return fit.slope * geometry.bar_seconds / mean_price

    def _line_touches(self, points: Sequence[Extremum], fit: LineFit, tolerance: float) -> int:
        # Tiny relative slack so exact fits survive float rounding
        return sum(1 for p in points
                   if abs(p.value - fit.price_at(p.time)) <= tolerance + 1e-9 * abs(p.value))

    def _converging(self, geometry: _Geometry) -> list[ChartPattern]:
        """Triangles and wedges: two converging lines over >= 4 alternating swings"""
        params = self.params
        flat = params.flat_slope_pct
        pivots = geometry.pivots
        patterns = []

        for start in range(len(pivots)):
            for length in range(4, params.max_pivots + 1):
                window = pivots[start:start + length]
                if len(window) < length:
                    break

                highs = [p for p in window if p.kind is ExtremumKind.PEAK]
                lows = [p for p in window if p.kind is ExtremumKind.TROUGH]
                if len(highs) < 2 or len(lows) < 2:
                    continue

                try:
                    upper = fit_line([(p.time, p.value) for p in highs])
                    lower = fit_line([(p.time, p.value) for p in lows])
                except ComputationError as e:
                    log_candidate_dropped(logger, "converging_lines", str(e), {"start_index": window[0].index})
                    continue

                t0, t1 = window[0].time, window[-1].time
                width_start = upper.price_at(t0) - lower.price_at(t0)
                width_end = upper.price_at(t1) - lower.price_at(t1)
                if width_start <= 0 or width_end <= 0 or width_end >= width_start:
                    continue

                amplitudes = [abs(b.value - a.value) for a, b in zip(window, window[1:])]
                if amplitudes[-1] >= amplitudes[0]:
                    continue

                mean_price = sum(p.value for p in window) / len(window)
                u = self._relative_slope(upper, geometry, mean_price)
                lo = self._relative_slope(lower, geometry, mean_price)

                upper_end = upper.price_at(t1)
                lower_end = lower.price_at(t1)

                if u < -flat and lo > flat:
                    kind, variant, implication = ChartPatternKind.TRIANGLE, "symmetric", Direction.NEUTRAL
                    shape_error = abs(abs(u) - abs(lo)) / max(abs(u), abs(lo))
                    breakout, target, stop = upper_end, upper_end + width_start, lower_end
                elif abs(u) <= flat and lo > flat:
                    kind, variant, implication = ChartPatternKind.TRIANGLE, "ascending", Direction.BULLISH
                    shape_error = abs(u) / flat
                    breakout, target, stop = upper_end, upper_end + width_start, lower_end
                elif u < -flat and abs(lo) <= flat:
                    kind, variant, implication = ChartPatternKind.TRIANGLE, "descending", Direction.BEARISH
                    shape_error = abs(lo) / flat
                    breakout, target, stop = lower_end, lower_end - width_start, upper_end
                elif u > flat and lo > u:
                    kind, variant, implication = ChartPatternKind.WEDGE, "rising", Direction.BEARISH
                    shape_error = u / lo
                    breakout, target, stop = lower_end, lower_end - width_start, upper_end
                elif lo < -flat and u < lo:
                    kind, variant, implication = ChartPatternKind.WEDGE, "falling", Direction.BULLISH
                    shape_error = lo / u
                    breakout, target, stop = upper_end, upper_end + width_start, lower_end
                else:
                    continue

                fit_error = 1.0 - (upper.r_squared + lower.r_squared) / 2.0
                symmetry_error = 0.5 * shape_error + 0.5 * fit_error
                touches = (self._line_touches(highs, upper, geometry.tolerance)
                           + self._line_touches(lows, lower, geometry.tolerance))

                key_points = tuple(
                    _key_point(p, "upper" if p.kind is ExtremumKind.PEAK else "lower") for p in window
                )
                patterns.append(ChartPattern(
                    kind=kind,
                    key_points=key_points,
                    confidence=pattern_confidence(symmetry_error, touches, 6),
                    metrics=PatternMetrics(target=target, stop_loss=stop, breakout_level=breakout),
                    implication=implication,
                    variant=variant,
                    start_index=window[0].index,
                    end_index=window[-1].index,
                    symmetry_error=symmetry_error,
                    touches=touches,
                ))

        return patterns

    def _head_and_shoulders(self, geometry: _Geometry) -> list[ChartPattern]:
        """Three peaks (or troughs) with the middle one most extreme"""
        params = self.params
        pivots = geometry.pivots
        patterns = []

        for i in range(len(pivots) - 4):
            left, neck_left, head, neck_right, right = pivots[i:i + 5]
            top = left.kind is ExtremumKind.PEAK

            if top and not (head.value > left.value and head.value > right.value):
                continue
            if not top and not (head.value < left.value and head.value < right.value):
                continue

            shoulder_mean = (left.value + right.value) / 2.0
            shoulder_diff = abs(left.value - right.value) / shoulder_mean
            if shoulder_diff > params.shoulder_tolerance:
                continue

            neckline = (neck_left.value + neck_right.value) / 2.0
            height = abs(head.value - neckline)
            if height / neckline < params.min_height_pct:
                continue

            neck_error = min(1.0, abs(neck_left.value - neck_right.value) / neckline / params.neckline_tolerance)
            left_span = head.index - left.index
            right_span = right.index - head.index
            time_error = abs(left_span - right_span) / max(left_span, right_span)
            symmetry_error = (shoulder_diff / params.shoulder_tolerance + neck_error + time_error) / 3.0

            touches = len(self.touch_detector.detect(
                geometry.candles, price=neckline, tolerance=geometry.tolerance,
                start_index=left.index, end_index=right.index + 1,
            ))

            if top:
                kind, implication = ChartPatternKind.HEAD_AND_SHOULDERS, Direction.BEARISH
                target = neckline - height
            else:
                kind, implication = ChartPatternKind.INVERSE_HEAD_AND_SHOULDERS, Direction.BULLISH
                target = neckline + height

            patterns.append(ChartPattern(
                kind=kind,
                key_points=(
                    _key_point(left, "left_shoulder"),
                    _key_point(neck_left, "neckline_left"),
                    _key_point(head, "head"),
                    _key_point(neck_right, "neckline_right"),
                    _key_point(right, "right_shoulder"),
                ),
                confidence=pattern_confidence(symmetry_error, touches, 4),
                metrics=PatternMetrics(target=target, stop_loss=head.value, breakout_level=neckline),
                implication=implication,
                start_index=left.index,
                end_index=right.index,
                symmetry_error=symmetry_error,
                touches=touches,
            ))

        return patterns

    def _double_extremes(self, geometry: _Geometry) -> list[ChartPattern]:
        """Two similar peaks (troughs) separated by an opposite swing"""
        params = self.params
        pivots = geometry.pivots
        patterns = []

        for i in range(len(pivots) - 2):
            first, middle, second = pivots[i:i + 3]
            top = first.kind is ExtremumKind.PEAK

            level = (first.value + second.value) / 2.0
            diff = abs(first.value - second.value) / level
            if diff > params.double_tolerance:
                continue
            if second.index - first.index < params.min_separation_bars:
                continue

            height = abs(level - middle.value)
            if height / level < params.min_height_pct:
                continue

            touches = len(self.touch_detector.detect(
                geometry.candles, price=level, tolerance=geometry.tolerance,
                start_index=first.index, end_index=second.index + 1,
            ))

            if top:
                kind, implication, role = ChartPatternKind.DOUBLE_TOP, Direction.BEARISH, "top"
                target = middle.value - height
                stop = max(first.value, second.value)
            else:
                kind, implication, role = ChartPatternKind.DOUBLE_BOTTOM, Direction.BULLISH, "bottom"
                target = middle.value + height
                stop = min(first.value, second.value)

            patterns.append(ChartPattern(
                kind=kind,
                key_points=(
                    _key_point(first, f"first_{role}"),
                    _key_point(middle, "neckline"),
                    _key_point(second, f"second_{role}"),
                ),
                confidence=pattern_confidence(diff / params.double_tolerance, touches, 3),
                metrics=PatternMetrics(target=target, stop_loss=stop, breakout_level=middle.value),
                implication=implication,
                start_index=first.index,
                end_index=second.index,
                symmetry_error=diff / params.double_tolerance,
                touches=touches,
            ))

        return patterns

    def _flag_segment(self, geometry: _Geometry, first: int, bull: bool,
                      pole_end: Extremum, pole: float) -> list[Candle]:
        """
        Longest run of candles after the pole that stays inside the flag.

        The run grows one bar at a time and stops at the breakout: a bar
        that exceeds the pole end, retraces too deep, or (once the minimum
        flag length is reached) closes outside the channel fitted so far.
        """
        params = self.params
        tolerance = geometry.tolerance
        segment: list[Candle] = []

        for candle in geometry.candles[first:first + params.flag_max_bars]:
            if bull:
                inside = (candle.high <= pole_end.value + tolerance
                          and (pole_end.value - candle.low) / pole <= params.flag_max_retrace)
            else:
                inside = (candle.low >= pole_end.value - tolerance
                          and (candle.high - pole_end.value) / pole <= params.flag_max_retrace)

            if inside and len(segment) >= params.flag_min_bars:
                if bull:
                    upper = fit_line([(c.time, c.high) for c in segment])
                    inside = candle.close <= upper.price_at(candle.time) + tolerance
                else:
                    lower = fit_line([(c.time, c.low) for c in segment])
                    inside = candle.close >= lower.price_at(candle.time) - tolerance

            if not inside:
                break
            segment.append(candle)

        return segment

    def _flags(self, geometry: _Geometry) -> list[ChartPattern]:
        """A sharp pole followed by a shallow counter-trend channel"""
        params = self.params
        pivots = geometry.pivots
        tolerance = geometry.tolerance
        patterns = []

        if geometry.atr <= 0:
            return patterns

        for i in range(len(pivots) - 1):
            pole_start, pole_end = pivots[i], pivots[i + 1]
            bull = pole_start.kind is ExtremumKind.TROUGH
            pole = abs(pole_end.value - pole_start.value)

            if pole_end.index - pole_start.index > params.pole_max_bars:
                continue
            if pole < params.pole_atr_multiple * geometry.atr:
                continue

            first = pole_end.index + 1
            try:
                segment = self._flag_segment(geometry, first, bull, pole_end, pole)
                if len(segment) < params.flag_min_bars:
                    continue
                upper = fit_line([(c.time, c.high) for c in segment])
                lower = fit_line([(c.time, c.low) for c in segment])
            except ComputationError as e:
                log_candidate_dropped(logger, "flag", str(e), {"pole_end": pole_end.index})
                continue

            seg_high = max(c.high for c in segment)
            seg_low = min(c.low for c in segment)
            if bull:
                retrace = (pole_end.value - seg_low) / pole
            else:
                retrace = (seg_high - pole_end.value) / pole
            if retrace < 0:
                continue

            mean_price = sum(c.close for c in segment) / len(segment)
            u = self._relative_slope(upper, geometry, mean_price)
            lo = self._relative_slope(lower, geometry, mean_price)
            drift = (u + lo) / 2.0
            # Channel must drift against the pole or sideways
            if (bull and drift > params.flat_slope_pct) or (not bull and drift < -params.flat_slope_pct):
                continue

            spread = abs(u) + abs(lo)
            parallel_error = abs(u - lo) / spread if spread > 0 else 0.0
            symmetry_error = 0.5 * (retrace / params.flag_max_retrace) + 0.5 * parallel_error

            touches = sum(
                1 for c in segment
                if abs(c.high - upper.price_at(c.time)) <= tolerance
                or abs(c.low - lower.price_at(c.time)) <= tolerance
            )

            last = segment[-1]
            if bull:
                breakout = upper.price_at(last.time)
                target, stop, implication = breakout + pole, seg_low, Direction.BULLISH
            else:
                breakout = lower.price_at(last.time)
                target, stop, implication = breakout - pole, seg_high, Direction.BEARISH

            patterns.append(ChartPattern(
                kind=ChartPatternKind.FLAG,
                key_points=(
                    _key_point(pole_start, "pole_start"),
                    _key_point(pole_end, "pole_end"),
                    KeyPoint(time=last.time, value=last.close, role="flag_end", index=first + len(segment) - 1),
                ),
                confidence=pattern_confidence(symmetry_error, touches, 4),
                metrics=PatternMetrics(target=target, stop_loss=stop, breakout_level=breakout),
                implication=implication,
                variant="bull" if bull else "bear",
                start_index=pole_start.index,
                end_index=first + len(segment) - 1,
                symmetry_error=symmetry_error,
                touches=touches,
            ))

        return patterns
