"""Cache of Event Hub clients, partition senders and processor hosts.

Remote handles are expensive and thread-safe, so one instance per key is
shared by every caller:

- event hub name -> EventHubClient
- (EventHubClient, partition id) -> PartitionSender
- (event hub name, consumer group) -> EventProcessorHost

Creation goes through ``memoize`` so a key is built at most once even under
concurrent access; a failed creation is not cached. Processor hosts can be
removed (when a consumer unregisters); clients and senders live until
``destroy()``.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, NoReturn

from azure_binding.common.memoizer import memoize
from azure_binding.common.metrics import record_handle_created
from azure_binding.eventhub.connection import ConnectionStringProvider
from azure_binding.eventhub.transport import (
    EventHubClient,
    EventHubTransport,
    EventProcessorHost,
    PartitionSender,
)
from core.errors.exceptions import (
    ConfigValidationError,
    TeardownError,
    TransportInitError,
    wrap_exception,
)
from core.logging.utilities import log_exception
from core.utils.worker_id import generate_host_name

logger = logging.getLogger(__name__)


def _raise_init_error(exc: Exception, message: str, context: dict) -> NoReturn:
    """Raise exc as a TransportInitError; binding errors from the transport pass through."""
    error = wrap_exception(exc, TransportInitError, message, context)
    if error is exc:
        raise error
    raise error from exc


class ClientFactory:
    """Memoized factory for Event Hub handles with orderly teardown.

    Args:
        transport: Creates the underlying SDK handles
        connection_string_provider: Resolves an event hub name to a connection string
        checkpoint_connection_string: Storage account used by processor hosts for
            leases and checkpoints
        host_name_factory: Builds the processor host identifier
    """

    def __init__(
        self,
        transport: EventHubTransport,
        connection_string_provider: ConnectionStringProvider,
        checkpoint_connection_string: str,
        host_name_factory: Callable[[], str] = generate_host_name,
    ):
        if not checkpoint_connection_string:
            raise ConfigValidationError("checkpoint_connection_string can't be null or empty")

        self._transport = transport
        self._connection_string_provider = connection_string_provider
        self._checkpoint_connection_string = checkpoint_connection_string
        self._host_name_factory = host_name_factory
        self._destroyed = False

        self._clients: dict[str, EventHubClient] = {}
        self._partition_senders: dict[tuple[EventHubClient, str], PartitionSender] = {}
        self._processor_hosts: dict[tuple[str, str], EventProcessorHost] = {}

        self._client_creator = memoize(self._clients, self._create_client)
        self._partition_sender_creator = memoize(
            self._partition_senders,
            self._create_partition_sender,
            key=lambda client, partition_id: (client, partition_id),
        )
        self._processor_host_creator = memoize(
            self._processor_hosts,
            self._create_processor_host,
            key=lambda name, consumer_group: (name, consumer_group),
        )

    # =========================================================================
    # Creation
    # =========================================================================

    def _create_client(self, eventhub_name: str) -> EventHubClient:
        connection_string = self._connection_string_provider.get_connection_string(eventhub_name)
        try:
            client = self._transport.create_client(connection_string, eventhub_name)
        except Exception as e:
            _raise_init_error(e, "Error when creating event hub client", {"eventhub_name": eventhub_name})

        record_handle_created("client")
        logger.info("Created event hub client", extra={"eventhub_name": eventhub_name})
        return client

    def _create_partition_sender(self, client: EventHubClient, partition_id: str) -> PartitionSender:
        try:
            sender = client.create_partition_sender(partition_id)
        except Exception as e:
            _raise_init_error(
                e,
                "Error when creating event hub partition sender",
                {"eventhub_name": client.eventhub_name, "partition_id": partition_id},
            )

        record_handle_created("partition_sender")
        logger.info(
            "Created partition sender",
            extra={"eventhub_name": client.eventhub_name, "partition_id": partition_id},
        )
        return sender

    def _create_processor_host(self, eventhub_name: str, consumer_group: str) -> EventProcessorHost:
        connection_string = self._connection_string_provider.get_connection_string(eventhub_name)
        host_name = self._host_name_factory()
        try:
            host = self._transport.create_processor_host(
                host_name=host_name,
                eventhub_name=eventhub_name,
                consumer_group=consumer_group,
                connection_string=connection_string,
                checkpoint_connection_string=self._checkpoint_connection_string,
                lease_container_name=eventhub_name,
            )
        except Exception as e:
            _raise_init_error(
                e,
                "Error when creating event processor host",
                {"eventhub_name": eventhub_name, "consumer_group": consumer_group},
            )

        record_handle_created("processor_host")
        logger.info(
            "Created event processor host",
            extra={
                "eventhub_name": eventhub_name,
                "consumer_group": consumer_group,
                "host_name": host_name,
            },
        )
        return host

    def _check_alive(self) -> None:
        if self._destroyed:
            raise RuntimeError("Client factory has been destroyed")

    # =========================================================================
    # Public API
    # =========================================================================

    def get_or_create_client(self, eventhub_name: str) -> EventHubClient:
        self._check_alive()
        return self._client_creator(eventhub_name)

    def get_or_create_partition_sender(self, eventhub_name: str, partition_id: str) -> PartitionSender:
        self._check_alive()
        return self._partition_sender_creator(self.get_or_create_client(eventhub_name), partition_id)

    def get_or_create_processor_host(self, eventhub_name: str, consumer_group: str) -> EventProcessorHost:
        self._check_alive()
        return self._processor_host_creator(eventhub_name, consumer_group)

    def get_processor_host(self, eventhub_name: str, consumer_group: str) -> EventProcessorHost | None:
        """Look up a processor host without creating one."""
        return self._processor_hosts.get((eventhub_name, consumer_group))

    def remove_processor_host(self, eventhub_name: str, consumer_group: str) -> EventProcessorHost | None:
        """Remove and return a processor host. The caller is responsible for closing it."""
        return self._processor_hosts.pop((eventhub_name, consumer_group), None)

    # =========================================================================
    # Teardown
    # =========================================================================

    @staticmethod
    async def _close_all(
        kind: str,
        handles: Mapping[Any, Any],
        close: Callable[[Any], Awaitable[None]],
    ) -> int:
        """Close every handle concurrently, logging failures. Returns the failure count."""
        items = list(handles.items())
        if not items:
            return 0

        async def close_one(handle: Any) -> None:
            await close(handle)

        results = await asyncio.gather(
            *(close_one(handle) for _, handle in items),
            return_exceptions=True,
        )

        failed = 0
        for (key, _), result in zip(items, results):
            if isinstance(result, BaseException):
                failed += 1
                error = TeardownError(f"Failed to close {kind}", cause=result, context={"key": str(key)})
                log_exception(logger, error, f"Failed to clean {kind}", level=logging.WARNING)

        logger.info(
            "Closed %s handles",
            kind,
            extra={"handle_count": len(items), "failed_count": failed},
        )
        return failed

    async def destroy(self) -> None:
        """Close every cached handle. Never raises.

        Senders are closed before the clients they depend on, processor
        hosts last. The factory cannot be used afterwards.
        """
        self._destroyed = True

        await self._close_all("partition sender", self._partition_senders, lambda s: s.close())
        await self._close_all("event hub client", self._clients, lambda c: c.close())
        await self._close_all(
            "event processor host",
            self._processor_hosts,
            lambda h: h.unregister_event_processor(),
        )

        self._partition_senders.clear()
        self._clients.clear()
        self._processor_hosts.clear()


__all__ = ["ClientFactory"]
