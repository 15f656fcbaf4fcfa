"""
Kline parsers converting raw market-data payloads to Candle objects.

Two row shapes are accepted at the ingestion boundary:

* positional arrays as returned by Binance-compatible kline endpoints:
  ``[openTime_ms, "open", "high", "low", "close", "volume", ...]``
* pre-parsed objects: ``{"time": seconds, "open": ..., ...}``; ``openTime``
  or ``open_time`` (milliseconds) are accepted in place of ``time``.

Prices and volumes may be numbers or numeric strings. Every value is
converted once here; detectors never coerce.
"""

import json
import math
from typing import Any, Union

from .models import Candle, CandleParseResult

KlineRow = Union[list, tuple, dict]

# Timestamps above this are milliseconds
_MS_THRESHOLD = 10_000_000_000


class ParseError(Exception):
    """Raised when parsing fails due to invalid data format."""
    pass


class InvalidPriceError(ParseError):
    """Raised when price data is invalid."""
    pass


class InvalidTimestampError(ParseError):
    """Raised when timestamp data is invalid."""
    pass


class InvalidVolumeError(ParseError):
    """Raised when volume data is invalid."""
    pass


class OHLCConsistencyError(ParseError):
    """Raised when OHLC data is inconsistent."""
    pass


def _to_float(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError(f"boolean is not a number: {value!r}")
    if isinstance(value, (int, float)):
        result = float(value)
    elif isinstance(value, str):
        result = float(value.strip())
    else:
        raise ValueError(f"unsupported type {type(value).__name__}")
    if not math.isfinite(result):
        raise ValueError(f"non-finite value {value!r}")
    return result


def _to_seconds(value: Any, *, milliseconds: bool) -> int:
    if isinstance(value, bool):
        raise InvalidTimestampError(f"Invalid timestamp '{value}'")
    try:
        if isinstance(value, str):
            value = value.strip()
            raw = int(value) if value.lstrip("-").isdigit() else int(float(value))
        elif isinstance(value, (int, float)):
            if not math.isfinite(value):
                raise ValueError("non-finite")
            raw = int(value)
        else:
            raise ValueError(f"unsupported type {type(value).__name__}")
    except ValueError as e:
        raise InvalidTimestampError(f"Invalid timestamp '{value}': {e}")

    if raw <= 0:
        raise InvalidTimestampError(f"Timestamp must be positive: {raw}")

    if milliseconds or raw > _MS_THRESHOLD:
        return raw // 1000
    return raw


def _build_candle(time_s: int, open_raw: Any, high_raw: Any, low_raw: Any,
                  close_raw: Any, volume_raw: Any) -> Candle:
    try:
        open_price = _to_float(open_raw)
        high_price = _to_float(high_raw)
        low_price = _to_float(low_raw)
        close_price = _to_float(close_raw)
    except ValueError as e:
        raise InvalidPriceError(f"Invalid price data [O:{open_raw}, H:{high_raw}, L:{low_raw}, C:{close_raw}]: {e}")

    try:
        volume = _to_float(volume_raw)
    except ValueError as e:
        raise InvalidVolumeError(f"Invalid volume '{volume_raw}': {e}")

    if any(price <= 0 for price in [open_price, high_price, low_price, close_price]):
        raise InvalidPriceError(f"All prices must be positive: O={open_price}, H={high_price}, L={low_price}, C={close_price}")

    if volume < 0:
        raise InvalidVolumeError(f"Volume must be non-negative: {volume}")

    if high_price < max(open_price, close_price) or low_price > min(open_price, close_price):
        raise OHLCConsistencyError(f"High/low prices inconsistent with open/close: O={open_price}, H={high_price}, L={low_price}, C={close_price}")

    return Candle(
        time=time_s,
        open=open_price,
        high=high_price,
        low=low_price,
        close=close_price,
        volume=volume,
    )


def parse_kline_row(row: KlineRow) -> Candle:
    """
    Parse one kline row, positional or object shaped, into a Candle.

    Args:
        row: Raw kline row

    Returns:
        Validated Candle

    Raises:
        InvalidPriceError: If price data is invalid
        InvalidTimestampError: If timestamp data is invalid
        InvalidVolumeError: If volume data is invalid
        OHLCConsistencyError: If OHLC prices are inconsistent
        ParseError: If the row shape is not recognised
    """
    if isinstance(row, (list, tuple)):
        if len(row) < 6:
            raise ParseError(f"Kline array must have at least 6 elements, got {len(row)}")
        time_s = _to_seconds(row[0], milliseconds=True)
        return _build_candle(time_s, row[1], row[2], row[3], row[4], row[5])

    if isinstance(row, dict):
        if "time" in row:
            time_s = _to_seconds(row["time"], milliseconds=False)
        elif "openTime" in row:
            time_s = _to_seconds(row["openTime"], milliseconds=True)
        elif "open_time" in row:
            time_s = _to_seconds(row["open_time"], milliseconds=True)
        else:
            raise ParseError("Kline object is missing 'time'")

        missing = [k for k in ("open", "high", "low", "close") if k not in row]
        if missing:
            raise ParseError(f"Kline object is missing fields: {missing}")

        return _build_candle(time_s, row["open"], row["high"], row["low"],
                             row["close"], row.get("volume", 0.0))

    raise ParseError(f"Kline row must be an array or object, got {type(row).__name__}")


def parse_kline_result(row: KlineRow) -> CandleParseResult:
    """Parse one kline row into a tagged result instead of raising."""
    try:
        return CandleParseResult.ok(parse_kline_row(row))
    except ParseError as e:
        return CandleParseResult.error(str(e), error_type=type(e).__name__)


def parse_klines_payload(payload: Any) -> list[Candle]:
    """
    Parse a kline payload into Candle objects in payload order.

    A bare list of rows is accepted, as is an object wrapping the rows
    under ``data`` or ``klines``.

    Raises:
        ParseError: If any row fails to parse; the message names its index
    """
    if isinstance(payload, dict):
        rows = payload.get("data", payload.get("klines"))
        if rows is None:
            raise ParseError("Missing 'data' field in payload")
    else:
        rows = payload

    if not isinstance(rows, (list, tuple)):
        raise ParseError("Kline payload must be a list")

    candles = []
    for i, row in enumerate(rows):
        try:
            candles.append(parse_kline_row(row))
        except ParseError as e:
            raise type(e)(f"Invalid kline at index {i}: {e}") from e
    return candles


def parse_json_payload(raw_data: Union[str, bytes]) -> Any:
    """
    Parse raw JSON text into Python objects.

    Raises:
        ParseError: If JSON parsing fails
    """
    try:
        return json.loads(raw_data)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
        raise ParseError(f"Invalid JSON: {e}")
