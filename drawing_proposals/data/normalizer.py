"""
Kline payload normalization into a clean candle series.

Exchanges occasionally return rows out of order or repeat the still-open
bar; the normalizer sorts rows, keeps the latest version of each open time
and validates the result before it reaches the detectors.
"""

from typing import Any, Optional

import structlog

from ..errors import DataQualityError
from .models import NormalizationResult
from .parsers import ParseError, parse_json_payload, parse_klines_payload
from .validators import DataValidator, is_duplicate_candle

logger = structlog.get_logger(__name__)


class CandleNormalizer:
    """Parsing and validation pipeline for kline payloads."""

    def __init__(self, config: Optional[dict[str, Any]] = None):
        """
        Initialize normalizer with configuration.

        Args:
            config: Normalization configuration dict, passed to DataValidator
        """
        self.config = config or {}
        self.validator = DataValidator(self.config)

    def normalize(self, payload: Any) -> NormalizationResult:
        """
        Normalize a kline payload (JSON text, list of rows or wrapped object).

        Args:
            payload: Raw payload from the market-data collaborator

        Returns:
            NormalizationResult with candles or error information
        """
        try:
            if isinstance(payload, (str, bytes)):
                payload = parse_json_payload(payload)

            candles = parse_klines_payload(payload)

            ordered = sorted(candles, key=lambda c: c.time)
            reordered = ordered != candles

            deduped = []
            dropped = 0
            for candle in ordered:
                if deduped and is_duplicate_candle(candle, deduped[-1]):
                    # Later row wins: it is the fresher update of the same bar
                    deduped[-1] = candle
                    dropped += 1
                else:
                    deduped.append(candle)

            self.validator.validate_series(deduped)

            if dropped or reordered:
                logger.debug("Kline payload normalized",
                             dropped_duplicates=dropped, reordered=reordered,
                             candle_count=len(deduped))

            return NormalizationResult.success_with_candles(deduped, dropped, reordered)

        except ParseError as e:
            logger.warning("Kline payload parse failed", error=str(e), error_type=type(e).__name__)
            return NormalizationResult.error(f"Parse error: {e}")
        except DataQualityError as e:
            logger.warning("Kline payload failed validation", error=str(e), error_type=type(e).__name__)
            return NormalizationResult.error(f"Data quality error: {e}")
