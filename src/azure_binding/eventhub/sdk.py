"""azure-eventhub SDK adapters for the transport contracts.

Uses the async SDK with AMQP over WebSocket transport for compatibility with
Azure Private Link endpoints. Namespace connection strings carry no
EntityPath; the event hub name is passed to the SDK separately.

Architecture notes:
- One EventHubProducerClient per event hub; partition senders are views over
  it because the SDK multiplexes partition links on the producer
- Processor hosts wrap an EventHubConsumerClient with a BlobCheckpointStore,
  so partition ownership and checkpoints live in Azure Blob Storage
- The user agent is handed to each client; no process-wide SDK state is touched
"""

import asyncio
import logging
from collections.abc import Sequence

from azure.eventhub import EventData, TransportType
from azure.eventhub.aio import EventHubConsumerClient, EventHubProducerClient
from azure.eventhub.extensions.checkpointstoreblobaio import BlobCheckpointStore

from azure_binding import USER_AGENT
from azure_binding.eventhub.diagnostics import log_connection_details, mask_connection_string
from azure_binding.eventhub.processor import EventHubProcessor, EventProcessorOptions
from core.errors.exceptions import SendError
from core.logging.utilities import log_with_context
from core.security.ssl_utils import get_ca_bundle_kwargs

logger = logging.getLogger(__name__)


class AzurePartitionSender:
    """Sends through its client to one fixed partition."""

    def __init__(self, client: "AzureEventHubClient", partition_id: str):
        self.partition_id = partition_id
        self._client = client
        self._closed = False

    async def send(self, events: Sequence[EventData]) -> None:
        if self._closed:
            raise SendError(f"Partition sender for partition '{self.partition_id}' is closed")
        if self._client.closed:
            raise SendError(
                f"Client for event hub '{self._client.eventhub_name}' is closed, "
                f"partition sender '{self.partition_id}' is no longer valid"
            )
        await self._client.send_batches(events, partition_id=self.partition_id)

    async def close(self) -> None:
        self._closed = True


class AzureEventHubClient:
    """EventHubProducerClient bound to one event hub."""

    def __init__(self, producer: EventHubProducerClient, eventhub_name: str, user_agent: str):
        self.eventhub_name = eventhub_name
        self.user_agent = user_agent
        self._producer = producer
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def _fill_batches(self, events: Sequence[EventData], **batch_options) -> list:
        """Pack events into EventDataBatch objects, starting a new batch on overflow."""
        batch = await self._producer.create_batch(**batch_options)
        batches = [batch]

        for event in events:
            try:
                batch.add(event)
            except ValueError:
                batch = await self._producer.create_batch(**batch_options)
                batch.add(event)
                batches.append(batch)

        return batches

    async def send_batches(self, events: Sequence[EventData], **batch_options) -> None:
        if self._closed:
            raise SendError(f"Client for event hub '{self.eventhub_name}' is closed")
        if not events:
            logger.debug("send called with no events", extra={"eventhub_name": self.eventhub_name})
            return

        batches = await self._fill_batches(events, **batch_options)
        for batch in batches:
            await self._producer.send_batch(batch)

        log_with_context(
            logger,
            logging.DEBUG,
            "Sent events",
            eventhub_name=self.eventhub_name,
            message_count=len(events),
            batches_sent=len(batches),
            partition_id=batch_options.get("partition_id"),
            partition_key=batch_options.get("partition_key"),
        )

    async def send(self, events: Sequence[EventData], partition_key: str | None = None) -> None:
        if partition_key:
            await self.send_batches(events, partition_key=partition_key)
        else:
            await self.send_batches(events)

    def create_partition_sender(self, partition_id: str) -> AzurePartitionSender:
        if self._closed:
            raise RuntimeError(f"Client for event hub '{self.eventhub_name}' is closed")
        return AzurePartitionSender(self, partition_id)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._producer.close()
        logger.info("Event hub client closed", extra={"eventhub_name": self.eventhub_name})


class AzureEventProcessorHost:
    """EventHubConsumerClient with blob checkpoints, driven in a background task."""

    def __init__(
        self,
        host_name: str,
        eventhub_name: str,
        consumer_group: str,
        connection_string: str,
        checkpoint_connection_string: str,
        lease_container_name: str,
        transport_type: TransportType = TransportType.AmqpOverWebsocket,
        user_agent: str = USER_AGENT,
    ):
        self.host_name = host_name
        self.eventhub_name = eventhub_name
        self.consumer_group = consumer_group
        self.lease_container_name = lease_container_name
        self._connection_string = connection_string
        self._checkpoint_connection_string = checkpoint_connection_string
        self._transport_type = transport_type
        self._user_agent = user_agent
        self._consumer: EventHubConsumerClient | None = None
        self._receive_task: asyncio.Task | None = None

    @property
    def is_registered(self) -> bool:
        return self._receive_task is not None

    async def register_event_processor(
        self,
        processor: EventHubProcessor,
        options: EventProcessorOptions,
    ) -> None:
        if self._receive_task is not None:
            raise RuntimeError(
                f"A processor is already registered on host '{self.host_name}' "
                f"for {self.eventhub_name}/{self.consumer_group}"
            )

        checkpoint_store = BlobCheckpointStore.from_connection_string(
            conn_str=self._checkpoint_connection_string,
            container_name=self.lease_container_name,
        )
        ssl_kwargs = get_ca_bundle_kwargs()
        log_connection_details(
            self._connection_string, self.eventhub_name, str(self._transport_type), ssl_kwargs
        )
        try:
            self._consumer = EventHubConsumerClient.from_connection_string(
                conn_str=self._connection_string,
                consumer_group=self.consumer_group,
                eventhub_name=self.eventhub_name,
                checkpoint_store=checkpoint_store,
                transport_type=self._transport_type,
                user_agent=self._user_agent,
                **ssl_kwargs,
            )
            self._receive_task = asyncio.create_task(
                self._receive(processor, options),
                name=f"eventhub-receive-{self.eventhub_name}-{self.consumer_group}",
            )

            logger.info(
                "Registered event processor",
                extra={
                    "eventhub_name": self.eventhub_name,
                    "consumer_group": self.consumer_group,
                    "host_name": self.host_name,
                    "start_position": options.start_position.value,
                    "checkpoint_mode": processor.mode.value,
                },
            )
        except Exception:
            # Leave the host unregistered so a retry starts clean
            await self._stop()
            raise

    async def _receive(self, processor: EventHubProcessor, options: EventProcessorOptions) -> None:
        try:
            await self._consumer.receive_batch(
                on_event_batch=processor.on_event_batch,
                on_partition_initialize=processor.on_partition_initialize,
                on_partition_close=processor.on_partition_close,
                on_error=processor.on_error,
                starting_position=options.starting_position,
                max_batch_size=options.max_batch_size,
                max_wait_time=options.max_wait_time,
                prefetch=options.prefetch,
            )
        except asyncio.CancelledError:
            logger.info("Receive loop cancelled", extra={"eventhub_name": self.eventhub_name})
            raise
        except Exception as e:
            logger.error(
                "Receive loop terminated with error",
                extra={
                    "eventhub_name": self.eventhub_name,
                    "consumer_group": self.consumer_group,
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "connection_string_masked": mask_connection_string(self._connection_string),
                },
                exc_info=True,
            )
            raise

    async def _stop(self) -> bool:
        """Close the consumer and end the receive task. Returns False if nothing was running."""
        consumer, task = self._consumer, self._receive_task
        self._consumer = None
        self._receive_task = None

        try:
            if consumer is not None:
                # close() makes receive_batch return
                await consumer.close()
        finally:
            if task is not None and not task.done():
                task.cancel()
            if task is not None:
                await asyncio.gather(task, return_exceptions=True)
        return consumer is not None or task is not None

    async def unregister_event_processor(self) -> None:
        if not await self._stop():
            return

        logger.info(
            "Unregistered event processor",
            extra={
                "eventhub_name": self.eventhub_name,
                "consumer_group": self.consumer_group,
                "host_name": self.host_name,
            },
        )


class AzureEventHubTransport:
    """Creates SDK-backed clients and processor hosts."""

    def __init__(
        self,
        user_agent: str = USER_AGENT,
        transport_type: TransportType = TransportType.AmqpOverWebsocket,
    ):
        self.user_agent = user_agent
        self.transport_type = transport_type

    def create_client(self, connection_string: str, eventhub_name: str) -> AzureEventHubClient:
        ssl_kwargs = get_ca_bundle_kwargs()
        log_connection_details(connection_string, eventhub_name, str(self.transport_type), ssl_kwargs)
        producer = EventHubProducerClient.from_connection_string(
            conn_str=connection_string,
            eventhub_name=eventhub_name,
            transport_type=self.transport_type,
            user_agent=self.user_agent,
            **ssl_kwargs,
        )
        return AzureEventHubClient(producer, eventhub_name, self.user_agent)

    def create_processor_host(
        self,
        host_name: str,
        eventhub_name: str,
        consumer_group: str,
        connection_string: str,
        checkpoint_connection_string: str,
        lease_container_name: str,
    ) -> AzureEventProcessorHost:
        return AzureEventProcessorHost(
            host_name=host_name,
            eventhub_name=eventhub_name,
            consumer_group=consumer_group,
            connection_string=connection_string,
            checkpoint_connection_string=checkpoint_connection_string,
            lease_container_name=lease_container_name,
            transport_type=self.transport_type,
            user_agent=self.user_agent,
        )


__all__ = [
    "AzureEventHubClient",
    "AzureEventHubTransport",
    "AzureEventProcessorHost",
    "AzurePartitionSender",
]
