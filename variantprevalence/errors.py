"""
Exception classes for variantprevalence.

All errors raised by the package derive from PrevalenceError so callers
(the CLI in particular) can catch package failures in one place. Input
errors also subclass ValueError, since they describe bad argument values.
"""

from typing import Any, Dict, Optional


class PrevalenceError(Exception):
    """Base exception for all variantprevalence errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize prevalence error.

        Parameters
        ----------
        message : str
            Error message
        details : dict, optional
            Additional error details
        """
        super().__init__(message)
        self.details = details or {}


class InputValidationError(PrevalenceError, ValueError):
    """Raised when counts, frequencies or levels fail validation."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        """Initialize input validation error."""
        super().__init__(message, {"field": field, "value": value})
        self.field = field


class DomainError(PrevalenceError, ValueError):
    """Raised when a statistic is mathematically undefined for valid inputs."""

    def __init__(self, message: str, operation: Optional[str] = None):
        """Initialize domain error."""
        super().__init__(message, {"operation": operation})
        self.operation = operation
