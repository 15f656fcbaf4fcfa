"""
Candle series validation: data quality and ordering rules.

Series handed to the detectors must satisfy the candle invariants
(``high >= max(open, close)``, ``low <= min(open, close)``, finite
positive prices) and strictly increasing open times.
"""

import math
from collections.abc import Sequence
from typing import Any, Optional

from ..errors import MalformedDataError, TemporalDataError
from .models import Candle


class DataValidator:
    """Validates candle series against quality and ordering rules."""

    def __init__(self, config: Optional[dict[str, Any]] = None):
        """
        Initialize validator with configuration.

        Args:
            config: Validation configuration dict
        """
        self.config = config or {}
        self.min_volume = self.config.get("min_volume", 0.0)

    def validate_candle(self, candle: Candle, index: Optional[int] = None) -> None:
        """
        Validate a single candle.

        Raises:
            MalformedDataError: If prices or volume violate candle invariants
        """
        prices = (candle.open, candle.high, candle.low, candle.close)
        context = {"index": index, "time": candle.time}

        if not all(math.isfinite(p) for p in prices) or not math.isfinite(candle.volume):
            raise MalformedDataError(f"Non-finite value in candle at index {index}", context=context)

        if any(p <= 0 for p in prices):
            raise MalformedDataError(f"Non-positive price in candle at index {index}", context=context)

        if candle.high < max(candle.open, candle.close) or candle.low > min(candle.open, candle.close):
            raise MalformedDataError(
                f"High/low inconsistent with open/close at index {index}",
                expected_format="low <= min(open, close) <= max(open, close) <= high",
                context=context,
            )

        if candle.volume < self.min_volume:
            raise MalformedDataError(f"Volume below minimum at index {index}", context=context)

    def split_non_finite(self, candles: Sequence[Candle]) -> tuple[list[Candle], list[int]]:
        """
        Separate candles carrying NaN or infinite values from the rest.

        Returns:
            Tuple of (usable candles, indices of the dropped candles)
        """
        kept: list[Candle] = []
        dropped: list[int] = []
        for i, candle in enumerate(candles):
            values = (candle.open, candle.high, candle.low, candle.close, candle.volume)
            if all(math.isfinite(v) for v in values):
                kept.append(candle)
            else:
                dropped.append(i)
        return kept, dropped

    def validate_series(self, candles: Sequence[Candle]) -> None:
        """
        Validate every candle and the ordering of the series.

        Raises:
            MalformedDataError: If a candle is malformed
            TemporalDataError: If open times are not strictly increasing
        """
        previous: Optional[Candle] = None
        for i, candle in enumerate(candles):
            self.validate_candle(candle, i)
            if previous is not None and candle.time <= previous.time:
                raise TemporalDataError(
                    f"Candle times must be strictly increasing (index {i})",
                    timestamp=candle.time,
                    previous_timestamp=previous.time,
                )
            previous = candle


def validate_candle_series(candles: Sequence[Candle]) -> None:
    """Validate a candle series with default rules."""
    DataValidator().validate_series(candles)


def is_duplicate_candle(candle: Candle, previous: Optional[Candle]) -> bool:
    """Check if a candle repeats the open time of the previous one."""
    return previous is not None and candle.time == previous.time
