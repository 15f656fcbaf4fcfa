"""
System failure error classifications.

These exceptions represent failures of the engine itself rather than of
the data it was given.
"""

from typing import Optional, Dict, Any


class SystemFailureError(Exception):
    """Base class for unrecoverable system failures."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class DetectorFailureError(SystemFailureError):
    """A proposal generator failed unexpectedly."""

    def __init__(self, message: str, detector: Optional[str] = None,
                 cause: Optional[BaseException] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.detector = detector
        self.cause = cause


class ConfigurationError(SystemFailureError):
    """Engine configuration is invalid."""

    def __init__(self, message: str, config_section: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.config_section = config_section
