"""
Data quality error classifications for candle series processing.

These exceptions categorize problems with the market data handed to the
engine. They are all recoverable: the offending request or candidate is
rejected and the engine keeps serving.
"""

from typing import Optional, Dict, Any


class DataQualityError(Exception):
    """Base class for data quality issues that can be handled gracefully."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = True


class TemporalDataError(DataQualityError):
    """Timestamp or sequencing issues in a candle series."""

    def __init__(self, message: str, timestamp: Optional[int] = None,
                 previous_timestamp: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.timestamp = timestamp
        self.previous_timestamp = previous_timestamp


class MissingDataError(DataQualityError):
    """Required data is completely missing."""

    def __init__(self, message: str, data_type: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.data_type = data_type


class MalformedDataError(DataQualityError):
    """Data exists but is in incorrect format."""

    def __init__(self, message: str, raw_data: Optional[str] = None,
                 expected_format: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.raw_data = raw_data
        self.expected_format = expected_format


class InsufficientDataError(DataQualityError):
    """Not enough candles for the requested analysis."""

    def __init__(self, message: str, required_count: Optional[int] = None,
                 available_count: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.required_count = required_count
        self.available_count = available_count


class DataFetchError(DataQualityError):
    """Candle series could not be fetched or came back empty."""

    def __init__(self, message: str, symbol: Optional[str] = None,
                 interval: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.symbol = symbol
        self.interval = interval


class ComputationError(DataQualityError):
    """Degenerate numeric input (NaN price, zero-variance abscissa) for one candidate."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 calculation_input: Optional[Dict[str, Any]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation
        self.calculation_input = calculation_input
