"""
Market-data collaborator interface and a Binance-compatible HTTP client.

The engine only depends on ``MarketDataClient.fetch_klines``; the HTTP
client and the caching wrapper are conveniences for deployments that do
not bring their own.
"""

import json
import socket
from dataclasses import dataclass
from typing import Optional, Protocol
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode, urlparse
from urllib.request import Request, urlopen

import structlog

from ..errors import DataFetchError, ValidationError
from ..persistence.analysis_cache import AnalysisCache
from ..utils.time import SUPPORTED_INTERVALS
from .models import Candle
from .normalizer import CandleNormalizer

logger = structlog.get_logger(__name__)


class MarketDataClient(Protocol):
    """Source of candle series."""

    def fetch_klines(self, symbol: str, interval: str, limit: int,
                     start: Optional[int] = None, end: Optional[int] = None) -> list[Candle]:
        """
        Candles for ``symbol`` at ``interval``, oldest first.

        Args:
            symbol: Trading pair, e.g. 'BTCUSDT'
            interval: One of the supported intervals
            limit: Maximum number of candles
            start: Optional first open time (unix seconds)
            end: Optional last open time (unix seconds)
        """
        ...


@dataclass(frozen=True)
class BinanceClientConfig:
    """HTTP client settings."""
    base_url: str = "https://api.binance.com"
    path: str = "/api/v3/klines"
    timeout_seconds: float = 5.0
    max_limit: int = 1000
    user_agent: str = "drawing-proposals/0.1"


class BinanceKlinesClient:
    """Fetches klines over HTTP and normalizes positional rows into candles."""

    def __init__(self, config: Optional[BinanceClientConfig] = None,
                 normalizer: Optional[CandleNormalizer] = None):
        self.config = config or BinanceClientConfig()
        self.normalizer = normalizer or CandleNormalizer()

        parsed = urlparse(self.config.base_url)
        if not parsed.scheme or not parsed.netloc:
            raise ValidationError(f"Invalid base URL: {self.config.base_url}", field="base_url")

    def build_url(self, symbol: str, interval: str, limit: int,
                  start: Optional[int] = None, end: Optional[int] = None) -> str:
        """Request URL; the exchange expects millisecond timestamps."""
        params = {
            "symbol": symbol.upper(),
            "interval": interval,
            "limit": max(1, min(limit, self.config.max_limit)),
        }
        if start is not None:
            params["startTime"] = start * 1000
        if end is not None:
            params["endTime"] = end * 1000
        return f"{self.config.base_url.rstrip('/')}{self.config.path}?{urlencode(params)}"

    def fetch_klines(self, symbol: str, interval: str, limit: int,
                     start: Optional[int] = None, end: Optional[int] = None) -> list[Candle]:
        if interval not in SUPPORTED_INTERVALS:
            raise ValidationError(f"Unsupported interval: {interval}", field="interval", value=interval)

        url = self.build_url(symbol, interval, limit, start, end)
        req = Request(url, headers={"User-Agent": self.config.user_agent}, method="GET")

        try:
            with urlopen(req, timeout=self.config.timeout_seconds) as response:
                body = response.read().decode("utf-8")
        except HTTPError as e:
            logger.warning("Kline fetch HTTP error", symbol=symbol, interval=interval,
                           error_code=e.code, error_reason=str(e.reason))
            raise DataFetchError(f"HTTP {e.code}: {e.reason}", symbol=symbol, interval=interval)
        except (OSError, URLError, socket.timeout) as e:
            logger.warning("Kline fetch network error", symbol=symbol, interval=interval, error=str(e))
            raise DataFetchError(f"Network error: {e}", symbol=symbol, interval=interval)

        result = self.normalizer.normalize(body)
        if not result.success:
            raise DataFetchError(result.error_msg or "Invalid kline payload", symbol=symbol, interval=interval)

        return list(result.candles)


class CachingMarketDataClient:
    """Wraps a client so repeated fetches within the TTL reuse the series."""

    def __init__(self, client: MarketDataClient, cache: AnalysisCache):
        self.client = client
        self.cache = cache

    def fetch_klines(self, symbol: str, interval: str, limit: int,
                     start: Optional[int] = None, end: Optional[int] = None) -> list[Candle]:
        key = ("klines", symbol, interval, limit, start, end)
        candles = self.cache.get_or_compute(
            key,
            lambda: self.client.fetch_klines(symbol, interval, limit, start, end),
            self.cache.ttl_for_interval(interval),
        )
        return list(candles)


def load_klines_file(path: str) -> list[Candle]:
    """
    Read a JSON kline dump (either row format) from disk.

    Raises:
        DataFetchError: If the file is unreadable or its payload invalid
    """
    try:
        with open(path, encoding="utf-8") as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise DataFetchError(f"Cannot read kline file {path}: {e}")

    result = CandleNormalizer().normalize(payload)
    if not result.success:
        raise DataFetchError(result.error_msg or f"Invalid kline file {path}")
    return list(result.candles)
