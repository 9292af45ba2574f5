"""
Core library: Reusable, infrastructure-agnostic components.

Modules:
    logging   - Structured JSON logging with context propagation
    errors    - Exception hierarchy with error categories
    security  - SSL helpers for Azure SDK clients behind corporate proxies
    utils     - JSON serialization and worker/host identifiers

Design Principles:
    - No dependencies on azure_binding or config
    - All modules are independently testable
"""

from .types import ErrorCategory

__version__ = "0.1.0"

__all__ = [
    "ErrorCategory",
]
