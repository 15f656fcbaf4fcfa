"""Pytest configuration and shared fixtures."""

import threading
from typing import Callable, Optional

import pytest

from drawing_proposals.data.models import Candle
from drawing_proposals.errors import DataFetchError

BASE_TIME = 1_700_000_400          # An hour boundary, unix seconds
HOUR = 3600

# One cycle of the triangle oscillation, in units of the current amplitude
_TRIANGLE_WAVE = [0.0, 0.5, 1.0, 0.5, 0.0, -0.5, -1.0, -0.5]


def make_candle(i: int, open_: float, high: float, low: float, close: float,
                volume: float = 1000.0, step: int = HOUR) -> Candle:
    return Candle(time=BASE_TIME + i * step, open=open_, high=high, low=low, close=close, volume=volume)


@pytest.fixture
def candle_factory() -> Callable[..., Candle]:
    """Build a candle at bar index ``i`` of an hourly series."""
    return make_candle


@pytest.fixture
def flat_candles() -> list[Candle]:
    """100 identical candles at 100.0: no range, no trend."""
    return [make_candle(i, 100.0, 100.0, 100.0, 100.0) for i in range(100)]


@pytest.fixture
def rising_candles() -> list[Candle]:
    """50 bullish candles rising one point per bar with constant shape."""
    candles = []
    for i in range(50):
        close = 100.0 + i
        candles.append(make_candle(i, close - 0.5, close + 0.25, close - 0.75, close))
    return candles


@pytest.fixture
def falling_candles() -> list[Candle]:
    """50 bearish candles falling one point per bar."""
    candles = []
    for i in range(50):
        close = 200.0 - i
        candles.append(make_candle(i, close + 0.5, close + 0.75, close - 0.25, close))
    return candles


@pytest.fixture
def triangle_candles() -> list[Candle]:
    """40 candles oscillating around 100 with linearly shrinking amplitude."""
    candles = []
    for i in range(40):
        amplitude = 10.0 * (1.0 - i / 48.0)
        mid = 100.0 + amplitude * _TRIANGLE_WAVE[i % 8]
        candles.append(make_candle(i, mid - 0.05, mid + 0.3, mid - 0.3, mid + 0.05))
    return candles


@pytest.fixture
def range_candles() -> list[Candle]:
    """60 candles bouncing between support near 95 and resistance near 105."""
    wave = [96.0, 98.0, 100.0, 102.0, 104.0, 102.0, 100.0, 98.0]
    candles = []
    for i in range(60):
        mid = wave[i % 8]
        if mid == 104.0:
            candles.append(make_candle(i, mid, 105.0, mid - 0.5, mid - 0.2))
        elif mid == 96.0:
            candles.append(make_candle(i, mid, mid + 0.5, 95.0, mid + 0.2))
        else:
            candles.append(make_candle(i, mid - 0.2, mid + 0.5, mid - 0.5, mid + 0.2))
    return candles


class FakeMarketData:
    """In-memory market data source; intervals in ``blocking`` wait on ``release``."""

    def __init__(self, series: dict[str, list[Candle]], blocking: tuple[str, ...] = (),
                 failing: tuple[str, ...] = ()):
        self.series = series
        self.blocking = blocking
        self.failing = failing
        self.release = threading.Event()
        self.calls: list[tuple] = []

    def fetch_klines(self, symbol: str, interval: str, limit: int,
                     start: Optional[int] = None, end: Optional[int] = None) -> list[Candle]:
        self.calls.append((symbol, interval, limit, start, end))
        if interval in self.blocking:
            self.release.wait(5.0)
            return []
        if interval in self.failing:
            raise DataFetchError("exchange unavailable", symbol=symbol, interval=interval)
        return list(self.series.get(interval, []))[-limit:]


@pytest.fixture
def fake_market_data():
    """Factory for FakeMarketData; blocked fetches are released on teardown."""
    created = []

    def factory(series, blocking=(), failing=()):
        client = FakeMarketData(series, blocking, failing)
        created.append(client)
        return client

    yield factory

    for client in created:
        client.release.set()
