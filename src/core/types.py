"""
Core types shared across modules.

Provides the error classification enum used by the exception hierarchy and
by structured logging to tag failures.
"""

from enum import Enum


class ErrorCategory(Enum):
    """
    Classification of error types for handling decisions.

    Categories:
        TRANSIENT: Temporary failures that may succeed on retry
                   (e.g., AMQP link detach, 503 from the config service)
        PERMANENT: Non-retriable failures (e.g., missing configuration)
        UNKNOWN: Unclassified errors
    """

    TRANSIENT = "transient"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"


__all__ = [
    "ErrorCategory",
]
