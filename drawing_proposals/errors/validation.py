"""Request parameter validation errors."""

from typing import Any, Optional


class ValidationError(Exception):
    """Malformed request parameters, rejected before any computation."""

    def __init__(self, message: str, field: Optional[str] = None,
                 value: Any = None):
        super().__init__(message)
        self.field = field
        self.value = value
        self.recoverable = False
