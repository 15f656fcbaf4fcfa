"""Tests for swing point detection"""

import pytest

from drawing_proposals.analysis.extrema import (
    ExtremaDetector,
    ExtremumKind,
    alternate_extrema,
    find_extrema,
)


def _series(candle_factory, highs, lows=None, volumes=None):
    lows = lows or [h - 2 for h in highs]
    volumes = volumes or [1000.0] * len(highs)
    return [
        candle_factory(i, low + 0.5, high, low, high - 0.5, volume)
        for i, (high, low, volume) in enumerate(zip(highs, lows, volumes))
    ]


class TestFindExtrema:
    """Test strict local extrema"""

    def test_single_peak(self, candle_factory):
        """The strictly highest bar inside its window is a peak"""
        highs = [10, 11, 12, 15, 12, 11, 10]
        peaks = find_extrema(_series(candle_factory, highs), ExtremumKind.PEAK, window=2,
                             volume_weighted=False)

        assert [p.index for p in peaks] == [3]
        assert peaks[0].value == 15
        assert peaks[0].kind is ExtremumKind.PEAK

    def test_plateau_is_not_an_extremum(self, candle_factory):
        """Equal neighbours break the strict comparison"""
        highs = [10, 11, 15, 15, 11, 10, 9]
        assert find_extrema(_series(candle_factory, highs), ExtremumKind.PEAK, window=2) == []

    def test_series_shorter_than_window(self, candle_factory):
        """Fewer than 2 * window + 1 candles give no extrema"""
        highs = [10, 12, 10]
        assert find_extrema(_series(candle_factory, highs), ExtremumKind.PEAK, window=2) == []

    def test_monotonic_series_has_no_extrema(self, rising_candles):
        """A trend without pullbacks has no swing points"""
        detector = ExtremaDetector(window=10)
        assert detector.find_peaks(rising_candles) == []
        assert detector.find_troughs(rising_candles) == []

    def test_volume_weighted_ordering(self, candle_factory):
        """Weighted extrema are ordered by relative volume"""
        highs = [10, 15, 10, 9, 10, 20, 10]
        volumes = [1000, 1000, 1000, 1000, 1000, 3000, 1000]
        candles = _series(candle_factory, highs, volumes=volumes)

        weighted = find_extrema(candles, ExtremumKind.PEAK, window=1, volume_weighted=True)
        plain = find_extrema(candles, ExtremumKind.PEAK, window=1, volume_weighted=False)

        assert [p.index for p in weighted] == [5, 1]
        assert [p.index for p in plain] == [1, 5]
        assert weighted[0].volume_weight == pytest.approx(3000 / (9000 / 7))

    def test_troughs_use_lows(self, candle_factory):
        """Troughs are found on candle lows"""
        highs = [20, 20, 20, 20, 20]
        lows = [15, 14, 10, 14, 15]
        troughs = find_extrema(_series(candle_factory, highs, lows), ExtremumKind.TROUGH, window=2)
        assert [(t.index, t.value) for t in troughs] == [(2, 10)]


class TestExtremaDetector:
    """Test the detector facade"""

    def test_find_by_field(self, triangle_candles):
        """'high' and 'low' select peaks and troughs"""
        detector = ExtremaDetector(window=3, volume_weighted=False)
        assert detector.find(triangle_candles, "high") == detector.find_peaks(triangle_candles)
        assert detector.find(triangle_candles, "low") == detector.find_troughs(triangle_candles)

    def test_unknown_field(self, triangle_candles):
        """Only high and low are supported"""
        with pytest.raises(ValueError):
            ExtremaDetector().find(triangle_candles, "close")

    def test_alternating_zigzag(self, triangle_candles):
        """The triangle oscillation alternates peaks and troughs"""
        pivots = ExtremaDetector(window=3, volume_weighted=False).alternating(triangle_candles)

        assert len(pivots) >= 6
        kinds = [p.kind for p in pivots]
        assert all(a is not b for a, b in zip(kinds, kinds[1:]))
        assert [p.index for p in pivots] == sorted(p.index for p in pivots)


class TestAlternateExtrema:
    """Test zigzag construction"""

    def test_collapses_consecutive_peaks(self, candle_factory):
        """Of two consecutive peaks the higher one survives"""
        highs = [10, 13, 12, 14, 11, 9, 8, 9, 10]
        lows = [8, 11, 11, 12, 9, 7, 5, 7, 8]
        candles = _series(candle_factory, highs, lows)
        peaks = find_extrema(candles, ExtremumKind.PEAK, window=1, volume_weighted=False)
        troughs = find_extrema(candles, ExtremumKind.TROUGH, window=1, volume_weighted=False)

        pivots = alternate_extrema(peaks + troughs)

        assert [p.index for p in peaks] == [1, 3]
        assert [(p.kind, p.index) for p in pivots] == [(ExtremumKind.PEAK, 3), (ExtremumKind.TROUGH, 6)]
