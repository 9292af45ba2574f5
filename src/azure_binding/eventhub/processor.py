"""Event processor callbacks driven by a processor host.

The host hands each received batch to ``EventHubProcessor.on_event_batch``.
The processor converts events to messages, invokes the consumer and writes
checkpoints according to its ``CheckpointConfig``:

- MANUAL: consumer calls ``message.headers[AzureHeaders.CHECKPOINTER].success()``
- RECORD: after every consumed event
- BATCH: once per batch, on the last consumed event
- PARTITION_COUNT: every ``count`` consumed events per partition
- TIME: when ``interval`` seconds have passed since the partition's last checkpoint

A consumer exception stops the batch: the failing event and everything after
it stay uncheckpointed and are redelivered after a restart or rebalance.
"""

import inspect
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from azure_binding.common.headers import AzureHeaders
from azure_binding.common.metrics import record_checkpoint
from azure_binding.common.types import CheckpointConfig, CheckpointMode, Message, StartPosition
from azure_binding.eventhub.converter import EventHubMessageConverter
from core.logging.context import set_log_context

logger = logging.getLogger(__name__)

# SDK starting positions
START_OF_STREAM = "-1"
END_OF_STREAM = "@latest"


@dataclass(frozen=True)
class EventProcessorOptions:
    """Options handed to the processor host on registration.

    The start position only applies to partitions without a checkpoint;
    an existing checkpoint always wins.
    """

    start_position: StartPosition = StartPosition.LATEST
    max_batch_size: int = 300
    prefetch: int = 300
    max_wait_time: float | None = None

    def initial_position(self, partition_id: str) -> str:
        if self.start_position is StartPosition.EARLIEST:
            return START_OF_STREAM
        return END_OF_STREAM

    @property
    def starting_position(self) -> str:
        return self.initial_position("")


class Checkpointer:
    """Checkpoints one received event on demand (MANUAL mode)."""

    def __init__(self, partition_context, event, on_checkpoint: Callable[[], None] | None = None):
        self._partition_context = partition_context
        self._event = event
        self._on_checkpoint = on_checkpoint

    async def success(self) -> None:
        await self._partition_context.update_checkpoint(self._event)
        if self._on_checkpoint:
            self._on_checkpoint()
        logger.debug(
            "Manual checkpoint written",
            extra={"partition_id": self._partition_context.partition_id},
        )

    async def failure(self, error: Exception | None = None) -> None:
        logger.warning(
            "Consumer reported failure, checkpoint skipped",
            extra={
                "partition_id": self._partition_context.partition_id,
                "error": str(error) if error else None,
            },
        )


class EventHubProcessor:
    """Dispatches received events to a consumer callable and checkpoints them."""

    def __init__(
        self,
        consumer: Callable[[Message], Any],
        checkpoint_config: CheckpointConfig | None = None,
        converter: EventHubMessageConverter | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.consumer = consumer
        self.checkpoint_config = checkpoint_config or CheckpointConfig()
        self.converter = converter or EventHubMessageConverter()
        self._clock = clock
        self._since_checkpoint: dict[str, int] = {}
        self._last_checkpoint_time: dict[str, float] = {}

    @property
    def mode(self) -> CheckpointMode:
        return self.checkpoint_config.mode

    # =========================================================================
    # Host callbacks
    # =========================================================================

    async def on_partition_initialize(self, partition_context) -> None:
        partition_id = partition_context.partition_id
        self._since_checkpoint[partition_id] = 0
        self._last_checkpoint_time[partition_id] = self._clock()
        logger.info(
            "Partition assigned",
            extra={
                "eventhub_name": partition_context.eventhub_name,
                "consumer_group": partition_context.consumer_group,
                "partition_id": partition_id,
                "checkpoint_mode": self.mode.value,
            },
        )

    async def on_partition_close(self, partition_context, reason) -> None:
        partition_id = partition_context.partition_id
        self._since_checkpoint.pop(partition_id, None)
        self._last_checkpoint_time.pop(partition_id, None)
        logger.info(
            "Partition revoked: %s",
            reason,
            extra={
                "eventhub_name": partition_context.eventhub_name,
                "consumer_group": partition_context.consumer_group,
                "partition_id": partition_id,
            },
        )

    async def on_error(self, partition_context, error) -> None:
        partition_id = partition_context.partition_id if partition_context else "unknown"
        logger.error(
            "Event Hub consumer error on partition %s: %s: %s",
            partition_id,
            type(error).__name__,
            error,
            extra={
                "partition_id": partition_id,
                "error_type": type(error).__name__,
                "error": str(error),
            },
        )

    async def on_event_batch(self, partition_context, events) -> None:
        if not events:
            return

        set_log_context(
            eventhub_name=partition_context.eventhub_name,
            consumer_group=partition_context.consumer_group,
        )

        last_consumed = None
        for event in events:
            message = self._to_message(partition_context, event)
            try:
                await self._dispatch(message)
            except Exception:
                logger.error(
                    "Message processing failed - will not checkpoint",
                    extra={
                        "eventhub_name": partition_context.eventhub_name,
                        "consumer_group": partition_context.consumer_group,
                        "partition_id": partition_context.partition_id,
                    },
                    exc_info=True,
                )
                break
            last_consumed = event
            await self._after_event(partition_context, event)

        if self.mode is CheckpointMode.BATCH and last_consumed is not None:
            await self._checkpoint(partition_context, last_consumed)

    # =========================================================================
    # Internals
    # =========================================================================

    def _to_message(self, partition_context, event) -> Message:
        extra_headers = None
        if self.mode is CheckpointMode.MANUAL:
            extra_headers = {
                AzureHeaders.CHECKPOINTER: Checkpointer(
                    partition_context,
                    event,
                    on_checkpoint=lambda: record_checkpoint(
                        partition_context.eventhub_name, partition_context.consumer_group
                    ),
                )
            }
        return self.converter.to_message(
            event,
            partition_context.eventhub_name,
            partition_context.partition_id,
            extra_headers=extra_headers,
        )

    async def _dispatch(self, message: Message) -> None:
        result = self.consumer(message)
        if inspect.isawaitable(result):
            await result

    async def _after_event(self, partition_context, event) -> None:
        partition_id = partition_context.partition_id

        if self.mode is CheckpointMode.RECORD:
            await self._checkpoint(partition_context, event)

        elif self.mode is CheckpointMode.PARTITION_COUNT:
            count = self._since_checkpoint.get(partition_id, 0) + 1
            if count >= self.checkpoint_config.count:
                await self._checkpoint(partition_context, event)
                count = 0
            self._since_checkpoint[partition_id] = count

        elif self.mode is CheckpointMode.TIME:
            now = self._clock()
            last = self._last_checkpoint_time.setdefault(partition_id, now)
            if now - last >= self.checkpoint_config.interval:
                await self._checkpoint(partition_context, event)
                self._last_checkpoint_time[partition_id] = now

    async def _checkpoint(self, partition_context, event) -> None:
        try:
            await partition_context.update_checkpoint(event)
        except Exception as e:
            logger.warning(
                "Failed to checkpoint",
                extra={
                    "eventhub_name": partition_context.eventhub_name,
                    "consumer_group": partition_context.consumer_group,
                    "partition_id": partition_context.partition_id,
                    "error": str(e),
                },
                exc_info=True,
            )
            return
        record_checkpoint(partition_context.eventhub_name, partition_context.consumer_group)


__all__ = [
    "Checkpointer",
    "EventHubProcessor",
    "EventProcessorOptions",
    "START_OF_STREAM",
    "END_OF_STREAM",
]
