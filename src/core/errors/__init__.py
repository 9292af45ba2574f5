"""
Error classification and exception hierarchy.

Provides:
- ErrorCategory enum for classifying errors
- BindingError hierarchy for typed exceptions
"""

from core.errors.exceptions import (
    BindingError,
    ConfigFetchError,
    ConfigValidationError,
    ErrorCategory,
    PermanentError,
    SendError,
    TeardownError,
    TransientError,
    TransportInitError,
    wrap_exception,
)

__all__ = [
    # Enums
    "ErrorCategory",
    # Base classes
    "BindingError",
    "TransientError",
    "PermanentError",
    # Event Hub
    "TransportInitError",
    "SendError",
    "TeardownError",
    # Configuration
    "ConfigFetchError",
    "ConfigValidationError",
    # Utilities
    "wrap_exception",
]
