"""
Unified exception hierarchy for azure_binding.

Construction and bootstrap errors are raised synchronously, send errors
surface through the returned future, and teardown errors are only logged.
"""

from core.types import ErrorCategory


class BindingError(Exception):
    """
    Base exception for all binding errors.

    Attributes:
        message: Human-readable error description
        cause: Original exception if wrapping
        context: Additional context dict for debugging
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        return self.category in (ErrorCategory.TRANSIENT, ErrorCategory.UNKNOWN)

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


class TransientError(BindingError):
    """Base class for transient/retriable errors."""

    category = ErrorCategory.TRANSIENT


class PermanentError(BindingError):
    """Base class for permanent/non-retriable errors."""

    category = ErrorCategory.PERMANENT


# =============================================================================
# Event Hub Errors
# =============================================================================


class TransportInitError(TransientError):
    """Client, partition sender or processor host could not be constructed."""

    pass


class SendError(TransientError):
    """Dispatching events to Event Hub failed."""

    pass


class TeardownError(BindingError):
    """Closing or unregistering a handle failed during shutdown."""

    pass


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigFetchError(TransientError):
    """Listing key-values from the configuration service failed."""

    pass


class ConfigValidationError(PermanentError):
    """Required configuration is missing or invalid."""

    pass


def wrap_exception(
    exc: Exception,
    error_class: type[BindingError],
    message: str,
    context: dict | None = None,
) -> BindingError:
    """
    Wrap an arbitrary exception in a BindingError subclass.

    BindingError instances are returned unchanged so the original
    classification survives re-wrapping.
    """
    if isinstance(exc, BindingError):
        return exc
    return error_class(message, cause=exc, context=context)


__all__ = [
    "ErrorCategory",
    "BindingError",
    "TransientError",
    "PermanentError",
    "TransportInitError",
    "SendError",
    "TeardownError",
    "ConfigFetchError",
    "ConfigValidationError",
    "wrap_exception",
]
