"""
Interval and time utilities.

Candle geometry is always expressed in market time (unix seconds of the
bar open); wall-clock time is only used for ``created_at`` stamps and cache
expiry.
"""

import time
from datetime import datetime, timezone
from typing import Callable, Optional

INTERVAL_SECONDS: dict[str, int] = {
    "1m": 60,
    "5m": 300,
    "15m": 900,
    "30m": 1800,
    "1h": 3600,
    "4h": 14400,
    "1d": 86400,
    "1w": 604800,
}

SUPPORTED_INTERVALS: tuple[str, ...] = tuple(INTERVAL_SECONDS)

# Higher timeframes consulted for trend confirmation
HIGHER_TIMEFRAMES: dict[str, tuple[str, ...]] = {
    "1m": ("5m", "15m", "1h"),
    "5m": ("15m", "1h", "4h"),
    "15m": ("1h", "4h", "1d"),
    "30m": ("1h", "4h", "1d"),
    "1h": ("4h", "1d", "1w"),
    "4h": ("1d", "1w"),
    "1d": ("1w",),
    "1w": (),
}

Clock = Callable[[], float]


def higher_timeframes(interval: str) -> tuple[str, ...]:
    """Higher timeframes checked for confluence with ``interval``."""
    return HIGHER_TIMEFRAMES.get(interval, ())


def now_ms(clock: Optional[Clock] = None) -> int:
    """
    Current wall-clock time in integer milliseconds.

    Args:
        clock: Optional callable returning seconds since the epoch, used by tests

    Returns:
        Milliseconds since the epoch
    """
    return int((clock or time.time)() * 1000)


def to_datetime(unix_seconds: int) -> datetime:
    """Convert unix seconds to an aware UTC datetime."""
    return datetime.fromtimestamp(unix_seconds, tz=timezone.utc)


def format_market_time(unix_seconds: int) -> str:
    """Format a candle time for human-readable reasoning text."""
    return to_datetime(unix_seconds).strftime("%Y-%m-%d %H:%M")


def median_bar_seconds(times: list[int], default: int = 60) -> int:
    """
    Median spacing between consecutive candle times.

    Used to convert per-second slopes into per-bar slopes when a series has
    gaps; falls back to ``default`` for series shorter than two bars.
    """
    if len(times) < 2:
        return default
    deltas = sorted(b - a for a, b in zip(times, times[1:]))
    return max(1, deltas[len(deltas) // 2])
