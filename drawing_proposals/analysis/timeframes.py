"""
Higher timeframe trend confirmation.

Higher timeframe series are fetched concurrently, each under its own
timeout. A timeframe whose fetch fails, times out or returns nothing is
logged and left out of the confluence denominator; it never fails the
analysis.
"""

import time
from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Optional

from ..config.defaults import TimeframeParams
from ..data.market_data import MarketDataClient
from ..data.models import Candle
from ..errors import DataFetchError, InsufficientDataError, PartialTimeframeFailure
from ..logging.config import get_timeframe_logger
from ..models.enums import TrendDirection
from ..utils.time import higher_timeframes

logger = get_timeframe_logger(__name__)


def classify_trend(candles: Sequence[Candle], threshold_pct: float = 0.02) -> tuple[TrendDirection, float]:
    """
    Trend of a series from its first and last quarter.

    Compares the mean close of the first quarter with that of the last
    quarter; a change above ``threshold_pct`` is up, below its negative is
    down, anything else sideways.

    Returns:
        (direction, relative change)

    Raises:
        InsufficientDataError: For an empty series
    """
    if not candles:
        raise InsufficientDataError("Cannot classify trend of an empty series",
                                    required_count=1, available_count=0)

    quarter = max(1, len(candles) // 4)
    first = sum(c.close for c in candles[:quarter]) / quarter
    last = sum(c.close for c in candles[-quarter:]) / quarter
    change = (last - first) / first

    if change > threshold_pct:
        return TrendDirection.UP, change
    if change < -threshold_pct:
        return TrendDirection.DOWN, change
    return TrendDirection.SIDEWAYS, change


@dataclass(frozen=True)
class TimeframeTrend:
    interval: str
    trend: TrendDirection
    change_pct: float
    aligned: bool
    candle_count: int


@dataclass(frozen=True)
class TimeframeConfluence:
    """Outcome of higher timeframe analysis"""
    interval: str
    current_trend: TrendDirection
    higher_timeframes: tuple[str, ...]
    results: tuple[TimeframeTrend, ...]
    failed: tuple[str, ...]

    @property
    def available(self) -> bool:
        return bool(self.results)

    @property
    def confirmed_count(self) -> int:
        return sum(1 for r in self.results if r.aligned)

    @property
    def confluence(self) -> float:
        """Aligned share of the timeframes that were analyzed, 0.0 if none were"""
        if not self.results:
            return 0.0
        return self.confirmed_count / len(self.results)

    def score(self, neutral: float = 0.5) -> float:
        """Confluence factor for confidence scoring; ``neutral`` when unavailable"""
        return self.confluence if self.available else neutral


class MultiTimeframeAnalyzer:
    """Fan-out/fan-in trend confirmation across higher timeframes."""

    def __init__(self, market_data: Optional[MarketDataClient] = None,
                 params: Optional[TimeframeParams] = None):
        self.market_data = market_data
        self.params = params or TimeframeParams()

    def analyze(self, symbol: str, interval: str, candles: Sequence[Candle]) -> TimeframeConfluence:
        """
        Compare the current trend with each higher timeframe's trend.

        Args:
            symbol: Symbol under analysis
            interval: Interval of ``candles``
            candles: Current timeframe series

        Returns:
            TimeframeConfluence over the timeframes that could be analyzed
        """
        current_trend, _ = classify_trend(candles, self.params.trend_threshold_pct)
        targets = higher_timeframes(interval)

        if not targets or self.market_data is None:
            return TimeframeConfluence(interval, current_trend, targets, (), ())

        series, failed = self._fetch_all(symbol, targets)

        results = []
        for tf in targets:
            if tf not in series:
                continue
            trend, change = classify_trend(series[tf], self.params.trend_threshold_pct)
            results.append(TimeframeTrend(
                interval=tf,
                trend=trend,
                change_pct=change,
                aligned=trend is current_trend,
                candle_count=len(series[tf]),
            ))

        confluence = TimeframeConfluence(interval, current_trend, targets, tuple(results), tuple(failed))
        logger.debug("Timeframe confluence computed", symbol=symbol, interval=interval,
                     confluence=confluence.confluence, analyzed=len(results), failed=list(failed))
        return confluence

    def _fetch_all(self, symbol: str, targets: Sequence[str]) -> tuple[dict[str, list[Candle]], list[str]]:
        timeout = self.params.fetch_timeout_seconds
        executor = ThreadPoolExecutor(max_workers=max(1, min(self.params.max_workers, len(targets))),
                                      thread_name_prefix="tf-fetch")
        series: dict[str, list[Candle]] = {}
        failed: list[str] = []

        try:
            futures: dict[str, tuple[Future, float]] = {}
            for tf in targets:
                futures[tf] = (executor.submit(self._fetch, symbol, tf), time.monotonic() + timeout)

            for tf, (future, deadline) in futures.items():
                try:
                    candles = future.result(timeout=max(0.0, deadline - time.monotonic()))
                    if not candles:
                        raise DataFetchError("Empty candle series", symbol=symbol, interval=tf)
                    series[tf] = candles
                except FutureTimeoutError:
                    future.cancel()
                    self._record_failure(symbol, tf, "timeout", f"no response within {timeout}s")
                    failed.append(tf)
                except Exception as e:
                    self._record_failure(symbol, tf, type(e).__name__, str(e))
                    failed.append(tf)
        finally:
            # Stragglers finish in the background; nothing waits on them
            executor.shutdown(wait=False, cancel_futures=True)

        return series, failed

    def _fetch(self, symbol: str, interval: str) -> list[Candle]:
        return self.market_data.fetch_klines(symbol, interval, self.params.candle_limit)

    def _record_failure(self, symbol: str, interval: str, reason: str, detail: str) -> None:
        failure = PartialTimeframeFailure(
            f"Higher timeframe {interval} unavailable: {detail}",
            interval=interval,
            reason=reason,
        )
        logger.warning(
            "Higher timeframe excluded from confluence",
            symbol=symbol,
            interval=interval,
            reason=reason,
            error=str(failure),
            fallback_strategy=failure.fallback_strategy,
        )
