"""Tests for kline parsing at the ingestion boundary"""

import pytest

from drawing_proposals.data.parsers import (
    InvalidPriceError,
    InvalidTimestampError,
    InvalidVolumeError,
    OHLCConsistencyError,
    ParseError,
    parse_json_payload,
    parse_kline_result,
    parse_kline_row,
    parse_klines_payload,
)


class TestParseKlineRow:
    """Test single row parsing"""

    def test_positional_row_in_milliseconds(self):
        """Exchange rows carry millisecond open times and string prices"""
        row = [1700000400000, "100.5", "101.0", "99.5", "100.8", "1234.5", 1700003999999, "0", 10]
        candle = parse_kline_row(row)

        assert candle.time == 1700000400
        assert (candle.open, candle.high, candle.low, candle.close) == (100.5, 101.0, 99.5, 100.8)
        assert candle.volume == 1234.5

    def test_object_row_in_seconds(self):
        """Pre-parsed objects use unix seconds"""
        candle = parse_kline_row({"time": 1700000400, "open": 1, "high": 2, "low": 0.5, "close": 1.5, "volume": 3})
        assert candle.time == 1700000400
        assert candle.close == 1.5

    def test_object_row_open_time_alias(self):
        """openTime is accepted in milliseconds"""
        candle = parse_kline_row({"openTime": 1700000400000, "open": 1, "high": 2, "low": 0.5, "close": 1.5})
        assert candle.time == 1700000400
        assert candle.volume == 0.0

    def test_millisecond_time_in_seconds_field(self):
        """Values too large to be seconds are treated as milliseconds"""
        candle = parse_kline_row({"time": 1700000400000, "open": 1, "high": 2, "low": 0.5, "close": 1.5})
        assert candle.time == 1700000400

    def test_short_row(self):
        """Positional rows need six fields"""
        with pytest.raises(ParseError):
            parse_kline_row([1700000400000, "1", "2", "0.5", "1.5"])

    def test_invalid_price(self):
        """Non-numeric and non-positive prices are rejected"""
        with pytest.raises(InvalidPriceError):
            parse_kline_row([1700000400000, "abc", "2", "0.5", "1.5", "1"])
        with pytest.raises(InvalidPriceError):
            parse_kline_row([1700000400000, "0", "2", "0.5", "1.5", "1"])

    def test_nan_price(self):
        """NaN is not a price"""
        with pytest.raises(InvalidPriceError):
            parse_kline_row([1700000400000, "nan", "2", "0.5", "1.5", "1"])

    def test_invalid_timestamp(self):
        """Timestamps must be positive integers"""
        with pytest.raises(InvalidTimestampError):
            parse_kline_row(["yesterday", "1", "2", "0.5", "1.5", "1"])
        with pytest.raises(InvalidTimestampError):
            parse_kline_row([-5, "1", "2", "0.5", "1.5", "1"])

    def test_negative_volume(self):
        """Volume cannot be negative"""
        with pytest.raises(InvalidVolumeError):
            parse_kline_row([1700000400000, "1", "2", "0.5", "1.5", "-1"])

    def test_inconsistent_ohlc(self):
        """High below close is inconsistent"""
        with pytest.raises(OHLCConsistencyError):
            parse_kline_row([1700000400000, "1", "1.2", "0.5", "1.5", "1"])

    def test_unsupported_row_type(self):
        """Rows must be arrays or objects"""
        with pytest.raises(ParseError):
            parse_kline_row("1,2,3")


class TestParseKlineResult:
    """Test the tagged result variant"""

    def test_success(self):
        result = parse_kline_result([1700000400000, "1", "2", "0.5", "1.5", "1"])
        assert result.success
        assert result.candle is not None

    def test_error_names_the_exception(self):
        """Failures carry the message and error type instead of raising"""
        result = parse_kline_result([1700000400000, "1", "1.2", "0.5", "1.5", "1"])

        assert not result.success
        assert result.candle is None
        assert result.error_type == "OHLCConsistencyError"


class TestParsePayload:
    """Test whole-payload parsing"""

    def test_wrapped_payload(self):
        """Rows may be wrapped under data or klines"""
        rows = [[1700000400000, "1", "2", "0.5", "1.5", "1"]]
        assert len(parse_klines_payload({"data": rows})) == 1
        assert len(parse_klines_payload({"klines": rows})) == 1

    def test_missing_rows(self):
        with pytest.raises(ParseError):
            parse_klines_payload({"result": []})

    def test_error_names_row_index(self):
        """The failing row is identified in the message"""
        rows = [[1700000400000, "1", "2", "0.5", "1.5", "1"], [1700003000000, "x", "2", "0.5", "1.5", "1"]]
        with pytest.raises(InvalidPriceError, match="index 1"):
            parse_klines_payload(rows)

    def test_invalid_json(self):
        with pytest.raises(ParseError):
            parse_json_payload("{not json")
