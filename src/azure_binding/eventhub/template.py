"""Send pipeline and consumer registry over a shared ClientFactory.

Send routing (first match wins):
- no partition supplier: the shared client, transport round-robin
- partition id: the cached partition sender for (event hub, partition id)
- partition key: the shared client with the key
- otherwise: the shared client

Consumers are registered per (event hub, consumer group) on a processor host
obtained from the factory. The start position and checkpoint policy set on the
template apply to subsequent registrations.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable
from typing import Any

from azure_binding.common.metrics import record_messages_sent, record_send_error
from azure_binding.common.types import (
    CheckpointConfig,
    Message,
    PartitionSupplier,
    StartPosition,
)
from azure_binding.eventhub.converter import EventHubMessageConverter
from azure_binding.eventhub.factory import ClientFactory
from azure_binding.eventhub.processor import EventHubProcessor, EventProcessorOptions
from core.errors.exceptions import SendError
from core.logging.context import set_log_context
from core.logging.utilities import log_exception

logger = logging.getLogger(__name__)

ROUTE_ROUND_ROBIN = "round_robin"
ROUTE_PARTITION_ID = "partition_id"
ROUTE_PARTITION_KEY = "partition_key"


class EventHubTemplate:
    """Sends messages to event hubs and manages consumer registrations.

    Args:
        client_factory: Shared factory owning every remote handle
        converter: Message to EventData converter
        max_batch_size: Receive batch size handed to processor hosts
        prefetch: Receive prefetch handed to processor hosts
    """

    def __init__(
        self,
        client_factory: ClientFactory,
        converter: EventHubMessageConverter | None = None,
        max_batch_size: int = 300,
        prefetch: int = 300,
    ):
        self._client_factory = client_factory
        self._converter = converter or EventHubMessageConverter()
        self._start_position = StartPosition.LATEST
        self._checkpoint_config = CheckpointConfig()
        self.max_batch_size = max_batch_size
        self.prefetch = prefetch

    @property
    def start_position(self) -> StartPosition:
        return self._start_position

    @start_position.setter
    def start_position(self, value: StartPosition | str) -> None:
        self._start_position = StartPosition.parse(value)
        logger.info(
            "Event Hub consumers will start from %s when no checkpoint exists",
            self._start_position.value,
            extra={"start_position": self._start_position.value},
        )

    @property
    def checkpoint_config(self) -> CheckpointConfig:
        return self._checkpoint_config

    @checkpoint_config.setter
    def checkpoint_config(self, value: CheckpointConfig) -> None:
        self._checkpoint_config = value
        logger.info(
            "Event Hub checkpoint mode set to %s",
            value.mode.value,
            extra={"checkpoint_mode": value.mode.value},
        )

    # =========================================================================
    # Send pipeline
    # =========================================================================

    def send_async(
        self,
        eventhub_name: str,
        messages: Message | Iterable[Message],
        partition_supplier: PartitionSupplier | None = None,
    ) -> asyncio.Future:
        """Send one message or a collection of messages.

        Must be called from a running event loop. Returns a future that
        completes when the transport acknowledges the send; send failures
        surface from it as ``SendError``. Handle creation or conversion
        failures come back as an already-failed future.

        Raises:
            ValueError: If eventhub_name is empty
        """
        if not eventhub_name:
            raise ValueError("eventhub_name can't be null or empty")

        loop = asyncio.get_running_loop()
        if isinstance(messages, Message):
            messages = [messages]

        try:
            events = [self._converter.from_message(m) for m in messages]
            route, send = self._resolve_route(eventhub_name, partition_supplier)
        except Exception as e:
            log_exception(
                logger,
                e,
                "Failed to prepare send",
                eventhub_name=eventhub_name,
                operation="send",
            )
            record_send_error(eventhub_name, type(e).__name__)
            future = loop.create_future()
            future.set_exception(e)
            return future

        return asyncio.ensure_future(self._do_send(eventhub_name, route, send, events))

    def _resolve_route(
        self,
        eventhub_name: str,
        partition_supplier: PartitionSupplier | None,
    ) -> tuple[str, Callable[[list], Any]]:
        if partition_supplier is None:
            client = self._client_factory.get_or_create_client(eventhub_name)
            return ROUTE_ROUND_ROBIN, client.send

        if partition_supplier.partition_id:
            sender = self._client_factory.get_or_create_partition_sender(
                eventhub_name, partition_supplier.partition_id
            )
            return ROUTE_PARTITION_ID, sender.send

        client = self._client_factory.get_or_create_client(eventhub_name)
        if partition_supplier.partition_key:
            key = partition_supplier.partition_key
            return ROUTE_PARTITION_KEY, lambda events: client.send(events, partition_key=key)

        return ROUTE_ROUND_ROBIN, client.send

    async def _do_send(
        self,
        eventhub_name: str,
        route: str,
        send: Callable[[list], Any],
        events: list,
    ) -> None:
        try:
            await send(events)
        except Exception as e:
            error = SendError(
                f"Failed to send to event hub '{eventhub_name}'",
                cause=e,
                context={"eventhub_name": eventhub_name, "route": route},
            )
            log_exception(
                logger,
                error,
                "Event Hub send failed",
                eventhub_name=eventhub_name,
                route=route,
                message_count=len(events),
            )
            record_send_error(eventhub_name, type(e).__name__)
            raise error from e

        record_messages_sent(eventhub_name, route, len(events))
        logger.debug(
            "Sent messages",
            extra={"eventhub_name": eventhub_name, "route": route, "message_count": len(events)},
        )

    # =========================================================================
    # Consumer registry
    # =========================================================================

    def build_properties(self) -> EventProcessorOptions:
        return EventProcessorOptions(
            start_position=self._start_position,
            max_batch_size=self.max_batch_size,
            prefetch=self.prefetch,
        )

    async def register(self, eventhub_name: str, consumer_group: str, processor) -> None:
        """Register a processor on the host for (eventhub_name, consumer_group).

        A failed registration is logged and re-raised. A host created by this
        call is dropped from the factory. A host that was already tracked may
        still be running an earlier registration, so it stays where
        ``unregister`` and ``destroy`` can close it.
        """
        set_log_context(eventhub_name=eventhub_name, consumer_group=consumer_group)
        existing = self._client_factory.get_processor_host(eventhub_name, consumer_group)
        host = self._client_factory.get_or_create_processor_host(eventhub_name, consumer_group)
        try:
            await host.register_event_processor(processor, self.build_properties())
        except Exception as e:
            log_exception(
                logger,
                e,
                "Failed to register event processor",
                eventhub_name=eventhub_name,
                consumer_group=consumer_group,
            )
            created_here = existing is None
            if created_here and self._client_factory.get_processor_host(eventhub_name, consumer_group) is host:
                self._client_factory.remove_processor_host(eventhub_name, consumer_group)
            raise

        logger.info(
            "Started Event Hub consumer on %s/%s",
            eventhub_name,
            consumer_group,
            extra={
                "eventhub_name": eventhub_name,
                "consumer_group": consumer_group,
                "start_position": self._start_position.value,
                "checkpoint_mode": self._checkpoint_config.mode.value,
            },
        )

    async def subscribe(
        self,
        eventhub_name: str,
        consumer_group: str,
        consumer: Callable[[Message], Any],
    ) -> EventHubProcessor:
        """Register a message callback, wrapped with the current checkpoint policy."""
        processor = EventHubProcessor(
            consumer,
            checkpoint_config=self._checkpoint_config,
            converter=self._converter,
        )
        await self.register(eventhub_name, consumer_group, processor)
        return processor

    async def unregister(self, eventhub_name: str, consumer_group: str) -> None:
        """Stop consuming (eventhub_name, consumer_group). Failures are logged, not raised."""
        # Removed before closing so a concurrent register builds a fresh host
        host = self._client_factory.remove_processor_host(eventhub_name, consumer_group)
        if host is None:
            logger.debug(
                "No processor host registered",
                extra={"eventhub_name": eventhub_name, "consumer_group": consumer_group},
            )
            return

        try:
            await host.unregister_event_processor()
        except Exception as e:
            log_exception(
                logger,
                e,
                "Failed to unregister event processor",
                level=logging.WARNING,
                eventhub_name=eventhub_name,
                consumer_group=consumer_group,
            )
            return

        logger.info(
            "Stopped Event Hub consumer on %s/%s",
            eventhub_name,
            consumer_group,
            extra={"eventhub_name": eventhub_name, "consumer_group": consumer_group},
        )


__all__ = [
    "EventHubTemplate",
    "ROUTE_PARTITION_ID",
    "ROUTE_PARTITION_KEY",
    "ROUTE_ROUND_ROBIN",
]
