"""Tests for kline payload normalization and series validation"""

import json

import pytest

from drawing_proposals.data.models import Candle
from drawing_proposals.data.normalizer import CandleNormalizer
from drawing_proposals.data.validators import DataValidator, is_duplicate_candle, validate_candle_series
from drawing_proposals.errors import MalformedDataError, TemporalDataError


def _row(t_ms, close, volume="10"):
    return [t_ms, str(close), str(close + 1), str(close - 1), str(close), volume]


class TestCandleNormalizer:
    """Test the normalization pipeline"""

    def test_sorts_rows(self):
        """Out-of-order rows are sorted by open time"""
        payload = [_row(1700003600000, 101), _row(1700000000000, 100)]
        result = CandleNormalizer().normalize(payload)

        assert result.success
        assert [c.time for c in result.candles] == [1700000000, 1700003600]
        assert result.reordered

    def test_duplicate_keeps_latest_row(self):
        """A repeated open time is replaced by the later row"""
        payload = [_row(1700000000000, 100), _row(1700000000000, 105), _row(1700003600000, 106)]
        result = CandleNormalizer().normalize(payload)

        assert result.success
        assert result.dropped_duplicates == 1
        assert result.candles[0].close == 105

    def test_json_text(self):
        """Raw JSON text is accepted"""
        payload = json.dumps([_row(1700000000000, 100)])
        result = CandleNormalizer().normalize(payload)
        assert result.success and len(result.candles) == 1

    def test_parse_failure_is_reported(self):
        """Parse errors become failed results, not exceptions"""
        result = CandleNormalizer().normalize([_row(1700000000000, 100), ["bad"]])

        assert not result.success
        assert "Parse error" in result.error_msg
        assert result.candles == ()

    def test_min_volume_rule(self):
        """Validation configuration is passed through to the validator"""
        result = CandleNormalizer({"min_volume": 100.0}).normalize([_row(1700000000000, 100, volume="5")])

        assert not result.success
        assert "Data quality error" in result.error_msg


class TestDataValidator:
    """Test candle series rules"""

    def test_valid_series(self, rising_candles):
        validate_candle_series(rising_candles)

    def test_non_increasing_times(self, candle_factory):
        """Open times must strictly increase"""
        candles = [candle_factory(1, 100, 101, 99, 100), candle_factory(0, 100, 101, 99, 100)]
        with pytest.raises(TemporalDataError) as exc_info:
            DataValidator().validate_series(candles)
        assert exc_info.value.previous_timestamp == candles[0].time

    def test_inconsistent_candle(self):
        """Candles built directly are validated too"""
        bad = Candle(time=1700000000, open=100, high=99, low=98, close=100, volume=1)
        with pytest.raises(MalformedDataError):
            DataValidator().validate_candle(bad, 0)

    def test_nan_candle(self):
        bad = Candle(time=1700000000, open=float("nan"), high=101, low=99, close=100, volume=1)
        with pytest.raises(MalformedDataError):
            validate_candle_series([bad])

    def test_split_non_finite(self, candle_factory):
        """NaN and infinite candles are separated with their indices"""
        good = candle_factory(0, 100, 101, 99, 100)
        nan = Candle(time=good.time + 3600, open=float("nan"), high=101, low=99, close=100, volume=1)
        inf = Candle(time=good.time + 7200, open=100, high=101, low=99, close=100, volume=float("inf"))

        kept, dropped = DataValidator().split_non_finite([good, nan, inf])

        assert kept == [good]
        assert dropped == [1, 2]

    def test_is_duplicate(self, candle_factory):
        first = candle_factory(0, 100, 101, 99, 100)
        assert is_duplicate_candle(first, first)
        assert not is_duplicate_candle(first, None)
