"""Resolve Event Hub names to connection strings."""

import logging
from collections.abc import Mapping
from typing import Protocol

from core.errors.exceptions import ConfigValidationError

logger = logging.getLogger(__name__)


class ConnectionStringProvider(Protocol):
    def get_connection_string(self, eventhub_name: str) -> str:
        ...


class EventHubConnectionStringProvider:
    """Connection strings from configuration.

    A per-hub entry wins over the namespace-level connection string. The
    namespace string carries no EntityPath; the hub name is passed to the
    SDK separately.
    """

    def __init__(
        self,
        namespace_connection_string: str | None = None,
        connection_strings: Mapping[str, str] | None = None,
    ):
        self._namespace_connection_string = namespace_connection_string or ""
        self._connection_strings = dict(connection_strings or {})

    def get_connection_string(self, eventhub_name: str) -> str:
        connection_string = (
            self._connection_strings.get(eventhub_name) or self._namespace_connection_string
        )
        if not connection_string:
            raise ConfigValidationError(
                f"No connection string configured for event hub '{eventhub_name}'",
                context={"eventhub_name": eventhub_name},
            )
        return connection_string


__all__ = ["ConnectionStringProvider", "EventHubConnectionStringProvider"]
