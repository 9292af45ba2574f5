"""Shared JSON serialization utilities for event payloads and log records."""

import base64
from datetime import date, datetime, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Any
from uuid import UUID


def _serialize_known_type(obj: Any) -> tuple[bool, Any]:
    """Try to serialize by known type. Returns (handled, result)."""
    if isinstance(obj, (datetime, date)):
        return True, obj.isoformat()
    if isinstance(obj, timedelta):
        return True, obj.total_seconds()
    if isinstance(obj, Decimal):
        return True, float(obj)
    if isinstance(obj, (Path, UUID)):
        return True, str(obj)
    if isinstance(obj, (bytes, bytearray)):
        return True, base64.b64encode(bytes(obj)).decode("ascii")
    return False, None


def json_serializer(obj: Any) -> Any:
    """
    Type-safe ``default=`` hook for ``json.dumps``.

    - datetime/date → ISO 8601 string
    - timedelta → seconds
    - Decimal → float
    - Path/UUID → string
    - bytes → base64 string
    - Enums → value
    - pydantic models → ``model_dump(mode="json")``
    - Everything else → ``__dict__`` or string (fallback)

    Numeric fields stay numeric so downstream consumers can aggregate them.
    """
    handled, result = _serialize_known_type(obj)
    if handled:
        return result
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    if hasattr(obj, "value"):
        return obj.value
    if hasattr(obj, "__dict__"):
        return obj.__dict__
    return str(obj)


__all__ = ["json_serializer"]
