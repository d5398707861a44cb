"""Exception hierarchy for the log service.

Errors raised here are limited to startup problems (bad configuration,
logging before ``init``). Failures while writing to a sink or forwarding to
the search backend are reported on the diagnostic logger and never raised to
the caller.
"""

from typing import Any


class LogServiceError(Exception):
    """Base exception for all log service errors.

    Attributes:
        message: Human-readable error message
        details: Additional error details (optional)
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for diagnostics."""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(LogServiceError):
    """Raised when the service is misconfigured or used before ``init``."""
    pass


class SinkWriteError(LogServiceError):
    """Raised by a sink when a record cannot be written to its transport."""

    def __init__(self, sink: str, message: str, details: dict[str, Any] | None = None):
        self.sink = sink
        super().__init__(message, details={"sink": sink, **(details or {})})
