"""
Concurrency-safe TTL cache for fetched candle series and analysis results.

The cache is an explicit component handed to the objects that use it; the
engine never keeps one at module level. A single lock guards the entry map
and a per-key lock serializes computation of the same key, so concurrent
requests for one symbol fetch it once while other keys proceed in parallel.
"""

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Hashable, Optional

import structlog

from ..config.defaults import CacheParams
from ..utils.time import Clock, INTERVAL_SECONDS


@dataclass
class CacheStats:
    """Hit/miss counters."""
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


@dataclass
class _Entry:
    value: Any
    expires_at: float


class AnalysisCache:
    """TTL map with LRU eviction beyond ``max_entries``."""

    def __init__(self, params: Optional[CacheParams] = None, clock: Optional[Clock] = None):
        self.params = params or CacheParams()
        self._clock = clock or time.monotonic
        self._entries: "OrderedDict[Hashable, _Entry]" = OrderedDict()
        self._lock = threading.Lock()
        self._key_locks: dict[Hashable, threading.Lock] = {}
        self.stats = CacheStats()
        self.logger = structlog.get_logger(__name__)

    def ttl_for_interval(self, interval: str) -> float:
        """
        Dynamic TTL: a fraction of the bar length, clamped to the configured bounds.

        A 1m series goes stale within seconds while a daily series can be
        reused for minutes.
        """
        seconds = INTERVAL_SECONDS.get(interval, 60) * self.params.ttl_fraction
        return max(self.params.min_ttl_seconds, min(self.params.max_ttl_seconds, seconds))

    def get(self, key: Hashable) -> Optional[Any]:
        """Cached value or None when missing or expired."""
        return self._lookup(key, record=True)

    def _lookup(self, key: Hashable, record: bool) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.expires_at <= self._clock():
                del self._entries[key]
                self.stats.expirations += 1
                entry = None
            if entry is None:
                if record:
                    self.stats.misses += 1
                return None
            self._entries.move_to_end(key)
            if record:
                self.stats.hits += 1
            return entry.value

    def set(self, key: Hashable, value: Any, ttl_seconds: float) -> None:
        with self._lock:
            self._entries[key] = _Entry(value=value, expires_at=self._clock() + ttl_seconds)
            self._entries.move_to_end(key)
            while len(self._entries) > self.params.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                self._key_locks.pop(evicted, None)
                self.stats.evictions += 1

    def invalidate(self, key: Hashable) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._key_locks.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _key_lock(self, key: Hashable) -> threading.Lock:
        with self._lock:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._key_locks[key] = lock
            return lock

    def get_or_compute(self, key: Hashable, compute: Callable[[], Any], ttl_seconds: float) -> Any:
        """
        Return the cached value, computing and storing it on a miss.

        Concurrent callers for the same key wait for the first computation
        instead of repeating it. Exceptions from ``compute`` propagate and
        nothing is cached.
        """
        value = self.get(key)
        if value is not None:
            return value

        key_lock = self._key_lock(key)
        with key_lock:
            value = self._lookup(key, record=False)
            if value is not None:
                return value

            try:
                value = compute()
            except Exception:
                # Nothing stored, so no eviction would ever release the lock
                with self._lock:
                    if self._key_locks.get(key) is key_lock:
                        del self._key_locks[key]
                raise
            self.set(key, value, ttl_seconds)
            self.logger.debug("Cache populated", key=str(key), ttl_seconds=ttl_seconds)
            return value
