"""Tests for chart pattern detection"""

import pytest

from drawing_proposals.analysis.chart_patterns import ChartPatternDetector, pattern_confidence
from drawing_proposals.models.enums import Direction
from drawing_proposals.models.patterns import ChartPatternKind


def _zigzag(candle_factory, values, spacing=4):
    """Candles whose midpoint walks linearly between successive ``values``"""
    mids = []
    for a, b in zip(values, values[1:]):
        mids.extend(a + (b - a) * k / spacing for k in range(spacing))
    mids.append(values[-1])
    return [candle_factory(i, m - 0.05, m + 0.3, m - 0.3, m + 0.05) for i, m in enumerate(mids)]


def _walk(candle_factory, start, legs):
    """Candles whose midpoint takes ``bars`` steps of ``step`` for each leg in turn"""
    mids = [start]
    for bars, step in legs:
        for _ in range(bars):
            mids.append(mids[-1] + step)
    return [candle_factory(i, m - 0.05, m + 0.3, m - 0.3, m + 0.05) for i, m in enumerate(mids)]


def _only(patterns, kind):
    found = [p for p in patterns if p.kind is kind]
    assert len(found) == 1
    return found[0]


class TestPatternConfidence:
    """Test the shared confidence rule"""

    def test_perfect_pattern_is_capped(self):
        """A flawless, fully touched pattern scores the 0.95 cap"""
        assert pattern_confidence(0.0, 10, 4) == 0.95

    def test_error_and_touches_reduce_confidence(self):
        """Symmetry error and missing touches both lower the score"""
        assert pattern_confidence(1.0, 0, 4) == pytest.approx(0.4)
        assert pattern_confidence(0.5, 2, 4) == pytest.approx(0.4 + 0.175 + 0.125)

    def test_error_is_clamped(self):
        """Errors outside [0, 1] are clamped"""
        assert pattern_confidence(3.0, 0, 4) == pytest.approx(0.4)


class TestChartPatternDetector:
    """Test individual pattern shapes"""

    def test_symmetric_triangle(self, triangle_candles):
        """Shrinking oscillation is a symmetric triangle with top confidence"""
        patterns = ChartPatternDetector().detect(triangle_candles)
        triangles = [p for p in patterns if p.kind is ChartPatternKind.TRIANGLE]

        assert len(triangles) == 1
        triangle = triangles[0]
        assert triangle.variant == "symmetric"
        assert triangle.implication is Direction.NEUTRAL
        assert triangle.confidence == pytest.approx(0.95)
        assert len(triangle.key_points) == 8
        assert {p.role for p in triangle.key_points} == {"upper", "lower"}
        assert triangle.metrics.breakout_level is not None

    def test_head_and_shoulders(self, candle_factory):
        """Equal shoulders around a higher head over a flat neckline"""
        candles = _zigzag(candle_factory, [100, 110, 100, 115, 100, 110, 98])
        patterns = ChartPatternDetector().detect(candles)
        hs = [p for p in patterns if p.kind is ChartPatternKind.HEAD_AND_SHOULDERS]

        assert len(hs) == 1
        pattern = hs[0]
        assert pattern.implication is Direction.BEARISH
        assert [p.role for p in pattern.key_points] == [
            "left_shoulder", "neckline_left", "head", "neckline_right", "right_shoulder",
        ]
        assert pattern.metrics.breakout_level == pytest.approx(99.7)
        assert pattern.metrics.target == pytest.approx(99.7 - 15.6)
        assert pattern.metrics.stop_loss == pytest.approx(115.3)
        assert pattern.confidence >= 0.6

    def test_double_bottom(self, candle_factory):
        """Two similar lows separated by a rally"""
        candles = _zigzag(candle_factory, [110, 100, 106, 100.5, 110])
        patterns = ChartPatternDetector().detect(candles)
        doubles = [p for p in patterns if p.kind is ChartPatternKind.DOUBLE_BOTTOM]

        assert len(doubles) == 1
        pattern = doubles[0]
        assert pattern.implication is Direction.BULLISH
        assert pattern.metrics.breakout_level == pytest.approx(106.3)
        assert pattern.metrics.stop_loss == pytest.approx(99.7)
        assert [p.role for p in pattern.key_points] == ["first_bottom", "neckline", "second_bottom"]

    def test_unequal_lows_are_not_a_double_bottom(self, candle_factory):
        """Lows more than 1% apart do not qualify"""
        candles = _zigzag(candle_factory, [110, 100, 106, 103, 110])
        patterns = ChartPatternDetector().detect(candles)
        assert not [p for p in patterns if p.kind is ChartPatternKind.DOUBLE_BOTTOM]

    def test_too_few_swings(self, rising_candles, flat_candles):
        """Series without three pivots produce no patterns"""
        detector = ChartPatternDetector()
        assert detector.detect(rising_candles) == []
        assert detector.detect(flat_candles) == []

    def test_results_sorted_by_confidence(self, candle_factory):
        """Patterns come back most confident first"""
        candles = _zigzag(candle_factory, [100, 110, 100, 115, 100, 110, 98])
        confidences = [p.confidence for p in ChartPatternDetector().detect(candles)]
        assert confidences == sorted(confidences, reverse=True)

    def test_inverse_head_and_shoulders(self, candle_factory):
        """Equal troughs around a deeper head under a flat neckline"""
        candles = _zigzag(candle_factory, [100, 90, 100, 85, 100, 90, 102])
        pattern = _only(ChartPatternDetector().detect(candles), ChartPatternKind.INVERSE_HEAD_AND_SHOULDERS)

        assert pattern.implication is Direction.BULLISH
        assert pattern.metrics.breakout_level == pytest.approx(100.3)
        assert pattern.metrics.target == pytest.approx(100.3 + 15.6)
        assert pattern.metrics.stop_loss == pytest.approx(84.7)

    def test_double_top(self, candle_factory):
        """Two similar highs separated by a pullback"""
        candles = _zigzag(candle_factory, [100, 110, 104, 109.5, 100])
        pattern = _only(ChartPatternDetector().detect(candles), ChartPatternKind.DOUBLE_TOP)

        assert pattern.implication is Direction.BEARISH
        assert [p.role for p in pattern.key_points] == ["first_top", "neckline", "second_top"]
        assert pattern.metrics.breakout_level == pytest.approx(103.7)
        assert pattern.metrics.target == pytest.approx(103.7 - 6.35)
        assert pattern.metrics.stop_loss == pytest.approx(110.3)


class TestConvergingPatterns:
    """Test triangle and wedge variants"""

    def test_ascending_triangle(self, candle_factory):
        """Flat highs over rising lows break out upwards"""
        candles = _zigzag(candle_factory, [95, 110, 100, 110, 104, 110, 107])
        triangle = _only(ChartPatternDetector().detect(candles), ChartPatternKind.TRIANGLE)

        assert triangle.variant == "ascending"
        assert triangle.implication is Direction.BULLISH
        assert len(triangle.key_points) == 5
        assert triangle.metrics.breakout_level == pytest.approx(110.3)
        assert triangle.metrics.target == pytest.approx(110.3 + 12.6)
        assert triangle.metrics.stop_loss == pytest.approx(105.7)

    def test_descending_triangle(self, candle_factory):
        """Flat lows under falling highs break out downwards"""
        candles = _zigzag(candle_factory, [115, 100, 110, 100, 106, 100, 103])
        triangle = _only(ChartPatternDetector().detect(candles), ChartPatternKind.TRIANGLE)

        assert triangle.variant == "descending"
        assert triangle.implication is Direction.BEARISH
        assert triangle.metrics.breakout_level == pytest.approx(99.7)
        assert triangle.metrics.target == pytest.approx(99.7 - 12.6)
        assert triangle.metrics.stop_loss == pytest.approx(104.3)

    def test_rising_wedge(self, candle_factory):
        """Both lines rise, the lower one faster"""
        candles = _zigzag(candle_factory, [102, 110, 100, 112, 106, 114, 110])
        wedge = _only(ChartPatternDetector().detect(candles), ChartPatternKind.WEDGE)

        assert wedge.variant == "rising"
        assert wedge.implication is Direction.BEARISH
        assert wedge.metrics.breakout_level == pytest.approx(108.7)
        assert wedge.metrics.target == pytest.approx(108.7 - 13.6)
        assert wedge.metrics.stop_loss == pytest.approx(114.3)
        assert wedge.symmetry_error == pytest.approx(1 / 6)

    def test_falling_wedge(self, candle_factory):
        """Both lines fall, the upper one faster"""
        candles = _zigzag(candle_factory, [118, 110, 120, 108, 114, 106, 110])
        wedge = _only(ChartPatternDetector().detect(candles), ChartPatternKind.WEDGE)

        assert wedge.variant == "falling"
        assert wedge.implication is Direction.BULLISH
        assert wedge.metrics.breakout_level == pytest.approx(111.3)
        assert wedge.metrics.target == pytest.approx(111.3 + 13.6)
        assert wedge.metrics.stop_loss == pytest.approx(105.7)


class TestFlags:
    """Test pole-and-channel flags"""

    def test_bull_flag_followed_by_breakout(self, candle_factory):
        """An 8-bar pullback after the pole ends at the breakout bar"""
        candles = _walk(candle_factory, 110.0, [(10, -1.0), (5, 4.0), (8, -0.4), (10, 2.0)])
        flag = _only(ChartPatternDetector().detect(candles), ChartPatternKind.FLAG)

        assert flag.variant == "bull"
        assert flag.implication is Direction.BULLISH
        assert [p.role for p in flag.key_points] == ["pole_start", "pole_end", "flag_end"]
        assert flag.start_index == 10
        assert flag.end_index == 23
        assert flag.metrics.breakout_level == pytest.approx(117.1)
        assert flag.metrics.target == pytest.approx(117.1 + 20.6)
        assert flag.metrics.stop_loss == pytest.approx(116.5)

    def test_bear_flag_followed_by_breakout(self, candle_factory):
        """A rising channel after a sharp drop, then continuation lower"""
        candles = _walk(candle_factory, 110.0, [(10, 1.0), (5, -4.0), (8, 0.4), (10, -2.0)])
        flag = _only(ChartPatternDetector().detect(candles), ChartPatternKind.FLAG)

        assert flag.variant == "bear"
        assert flag.implication is Direction.BEARISH
        assert flag.end_index == 23
        assert flag.metrics.breakout_level == pytest.approx(102.9)
        assert flag.metrics.target == pytest.approx(102.9 - 20.6)
        assert flag.metrics.stop_loss == pytest.approx(103.5)

    def test_flag_at_end_of_series(self, candle_factory):
        """A flag still forming needs only the two pivots of its pole"""
        candles = _walk(candle_factory, 110.0, [(10, -1.0), (5, 4.0), (8, -0.4)])
        flag = _only(ChartPatternDetector().detect(candles), ChartPatternKind.FLAG)

        assert flag.variant == "bull"
        assert flag.end_index == len(candles) - 1

    def test_short_pullback_is_not_a_flag(self, candle_factory):
        """Fewer than five bars between pole and breakout do not qualify"""
        candles = _walk(candle_factory, 110.0, [(10, -1.0), (5, 4.0), (3, -0.4), (10, 2.0)])
        assert not [p for p in ChartPatternDetector().detect(candles) if p.kind is ChartPatternKind.FLAG]
