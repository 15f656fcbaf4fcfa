"""Tests for ATR-tolerance touch detection"""

import pytest

from drawing_proposals.analysis.touches import TouchDetector, normalize_touch_count
from drawing_proposals.errors import ComputationError
from drawing_proposals.models.lines import DetectedLine, LineKind


class TestNormalizeTouchCount:
    """Test the touch factor"""

    @pytest.mark.parametrize("count,expected", [(0, 0.0), (-3, 0.0), (5, 0.5), (10, 1.0), (25, 1.0)])
    def test_saturates_at_ten(self, count, expected):
        """Ten touches score fully"""
        assert normalize_touch_count(count) == expected


class TestTouchDetector:
    """Test touch detection on levels and sloped lines"""

    def test_flat_series_requires_exact_match(self, flat_candles):
        """With zero ATR only the exact level touches"""
        detector = TouchDetector()

        assert detector.tolerance(flat_candles) == 0.0
        assert len(detector.detect(flat_candles, price=100.0)) == 100
        assert detector.detect(flat_candles, price=100.0001) == []

    def test_tolerance_from_atr(self, rising_candles):
        """Tolerance is half the ATR by default"""
        # Every bar's true range is high - previous close = 1.25
        assert TouchDetector().tolerance(rising_candles) == pytest.approx(0.625)
        assert TouchDetector(tolerance_multiplier=1.0).tolerance(rising_candles) == pytest.approx(1.25)

    def test_sloped_line_touches_every_low(self, rising_candles):
        """A line through every low touches every candle"""
        first = rising_candles[0]
        slope = 1.0 / 3600
        intercept = first.low - slope * first.time

        touches = TouchDetector().detect(rising_candles, slope=slope, intercept=intercept, tolerance=1e-6)

        assert len(touches) == 50
        assert touches[0].index == 0
        assert touches[-1].value == pytest.approx(rising_candles[-1].low)

    def test_level_touch_with_tolerance(self, range_candles):
        """Candles within the band around a level touch it"""
        touches = TouchDetector().detect(range_candles, price=105.0, tolerance=0.1)
        assert touches
        assert all(range_candles[t.index].high >= 104.9 for t in touches)
        assert all(t.value == 105.0 for t in touches)

    def test_index_window(self, flat_candles):
        """Only candles in [start_index, end_index) are examined"""
        touches = TouchDetector().detect(flat_candles, price=100.0, start_index=10, end_index=20)
        assert [t.index for t in touches] == list(range(10, 20))

    def test_underspecified_line(self, flat_candles):
        """A sloped line needs both slope and intercept"""
        with pytest.raises(ComputationError):
            TouchDetector().detect(flat_candles, slope=1.0)

    def test_detect_line(self, flat_candles):
        """DetectedLine levels are matched on their price"""
        line = DetectedLine(kind=LineKind.HORIZONTAL, touch_points=(), confidence=0.5,
                            timeframe="1h", price=100.0)
        assert len(TouchDetector().detect_line(flat_candles, line)) == 100
