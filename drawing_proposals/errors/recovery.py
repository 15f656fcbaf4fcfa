"""
Recovery strategy classifications for error handling.

These classes categorize errors by their recovery characteristics and
guide the error handling strategy.
"""

from typing import Optional


class RecoverableError(Exception):
    """Errors that can be recovered from automatically."""

    def __init__(self, message: str, retry_count: int = 0,
                 max_retries: int = 3, **kwargs):
        super().__init__(message)
        self.retry_count = retry_count
        self.max_retries = max_retries
        self.recoverable = True


class GracefulDegradationError(Exception):
    """Errors that allow continued operation with reduced functionality."""

    def __init__(self, message: str, degraded_functionality: Optional[str] = None,
                 fallback_strategy: Optional[str] = None, **kwargs):
        super().__init__(message)
        self.degraded_functionality = degraded_functionality
        self.fallback_strategy = fallback_strategy
        self.allows_degradation = True


class PartialTimeframeFailure(GracefulDegradationError):
    """One higher timeframe could not be analyzed; confluence uses the rest."""

    def __init__(self, message: str, interval: Optional[str] = None,
                 reason: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            degraded_functionality="timeframe_confluence",
            fallback_strategy="exclude_timeframe",
            **kwargs,
        )
        self.interval = interval
        self.reason = reason
