"""Connection string helpers for safe logging and troubleshooting."""

import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_SECRET_PATTERN = re.compile(r"(SharedAccessKey|AccountKey|Secret)=[^;]+", re.IGNORECASE)


def mask_connection_string(conn_str: str) -> str:
    """Mask key material in Event Hub, Storage and App Configuration connection strings."""
    if not conn_str:
        return ""
    return _SECRET_PATTERN.sub(lambda m: f"{m.group(1)}=***MASKED***", conn_str)


def parse_connection_string(conn_str: str) -> dict[str, str]:
    """Split ``Key=Value;Key=Value`` into a dict."""
    if not conn_str:
        return {}

    parts = {}
    for part in conn_str.split(";"):
        if "=" in part:
            key, value = part.split("=", 1)
            parts[key.strip()] = value.strip()

    return parts


def extract_namespace_host(conn_str: str) -> str | None:
    """Extract the namespace hostname (e.g. ``myns.servicebus.windows.net``)."""
    endpoint = parse_connection_string(conn_str).get("Endpoint", "")
    match = re.search(r"sb://([^/]+)", endpoint)
    if match:
        return match.group(1)
    return None


def log_connection_details(
    conn_str: str,
    eventhub_name: str,
    transport_type: str,
    ssl_kwargs: dict[str, Any],
) -> None:
    """Log what a client is about to connect to, without secrets."""
    parts = parse_connection_string(conn_str)
    logger.debug(
        "Event Hub connection details",
        extra={
            "eventhub_name": eventhub_name,
            "operation": "connect",
            "connection_string_masked": mask_connection_string(conn_str),
        },
    )
    if parts.get("EntityPath") and parts["EntityPath"] != eventhub_name:
        logger.warning(
            "Connection string EntityPath '%s' differs from event hub name '%s'",
            parts["EntityPath"],
            eventhub_name,
            extra={"eventhub_name": eventhub_name},
        )
    logger.debug(
        "Transport %s, namespace %s, custom CA bundle: %s",
        transport_type,
        extract_namespace_host(conn_str) or "unknown",
        ssl_kwargs.get("connection_verify", "system default"),
    )


__all__ = [
    "mask_connection_string",
    "parse_connection_string",
    "extract_namespace_host",
    "log_connection_details",
]
