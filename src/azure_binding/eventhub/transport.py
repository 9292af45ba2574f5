"""Transport contracts the client factory and template program against.

The azure-eventhub SDK adapters in ``azure_binding.eventhub.sdk`` are the
production implementation; tests substitute in-memory fakes.

Handle creation is synchronous. Sending, registering, unregistering and
closing are coroutines and complete on the event loop.
"""

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class PartitionSender(Protocol):
    """Sender bound to one partition of one client."""

    partition_id: str

    async def send(self, events: Sequence[Any]) -> None:
        """Send events to the bound partition, preserving submission order."""
        ...

    async def close(self) -> None:
        ...


@runtime_checkable
class EventHubClient(Protocol):
    """Thread-safe client for one Event Hub entity."""

    eventhub_name: str
    user_agent: str

    @property
    def closed(self) -> bool:
        ...

    async def send(self, events: Sequence[Any], partition_key: str | None = None) -> None:
        """Send events, hashed by ``partition_key`` or round-robin when None."""
        ...

    def create_partition_sender(self, partition_id: str) -> PartitionSender:
        ...

    async def close(self) -> None:
        ...


@runtime_checkable
class EventProcessorHost(Protocol):
    """Durable consumer for one (Event Hub, consumer group) pair."""

    host_name: str
    eventhub_name: str
    consumer_group: str

    async def register_event_processor(self, processor: Any, options: Any) -> None:
        """Start leasing partitions and dispatching events to ``processor``."""
        ...

    async def unregister_event_processor(self) -> None:
        """Stop dispatching and release partition leases."""
        ...


class EventHubTransport(Protocol):
    """Factory for remote handles."""

    def create_client(self, connection_string: str, eventhub_name: str) -> EventHubClient:
        ...

    def create_processor_host(
        self,
        host_name: str,
        eventhub_name: str,
        consumer_group: str,
        connection_string: str,
        checkpoint_connection_string: str,
        lease_container_name: str,
    ) -> EventProcessorHost:
        ...


__all__ = [
    "EventHubClient",
    "EventHubTransport",
    "EventProcessorHost",
    "PartitionSender",
]
