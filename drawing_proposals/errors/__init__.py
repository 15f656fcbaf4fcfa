"""
Error classification system for the proposal engine.

Structured exception hierarchy for problems with request parameters,
market data quality, degenerate computations and engine failures.
"""

from .data_quality import (
    DataQualityError,
    TemporalDataError,
    MissingDataError,
    MalformedDataError,
    InsufficientDataError,
    DataFetchError,
    ComputationError,
)
from .system_failures import (
    SystemFailureError,
    DetectorFailureError,
    ConfigurationError,
)
from .recovery import (
    RecoverableError,
    GracefulDegradationError,
    PartialTimeframeFailure,
)
from .validation import ValidationError

__all__ = [
    # Data Quality Errors
    "DataQualityError",
    "TemporalDataError",
    "MissingDataError",
    "MalformedDataError",
    "InsufficientDataError",
    "DataFetchError",
    "ComputationError",
    # System Failures
    "SystemFailureError",
    "DetectorFailureError",
    "ConfigurationError",
    # Recovery Categories
    "RecoverableError",
    "GracefulDegradationError",
    "PartialTimeframeFailure",
    # Request validation
    "ValidationError",
]
