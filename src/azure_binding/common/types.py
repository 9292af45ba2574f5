"""Value objects describing messages, routing and delivery semantics."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from azure_binding.common.headers import AzureHeaders
from core.errors.exceptions import ConfigValidationError

__all__ = [
    "Message",
    "PartitionSupplier",
    "StartPosition",
    "CheckpointMode",
    "CheckpointConfig",
]


@dataclass(frozen=True)
class Message:
    """Transport-agnostic message: a payload plus read-only headers."""

    payload: Any
    headers: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    def get_header(self, name: str, default: Any = None) -> Any:
        return self.headers.get(name, default)


@dataclass(frozen=True)
class PartitionSupplier:
    """Routing hint: an explicit partition id or a partition key.

    When both are empty the transport round-robins across partitions.
    A non-empty partition id takes precedence over the key.
    """

    partition_id: str | None = None
    partition_key: str | None = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, Any]) -> "PartitionSupplier | None":
        partition_id = headers.get(AzureHeaders.PARTITION_ID)
        partition_key = headers.get(AzureHeaders.PARTITION_KEY)
        if partition_id is None and partition_key is None:
            return None
        return cls(
            partition_id=str(partition_id) if partition_id is not None else None,
            partition_key=str(partition_key) if partition_key is not None else None,
        )


class StartPosition(Enum):
    """Initial offset used when no checkpoint exists for a partition."""

    EARLIEST = "earliest"
    LATEST = "latest"

    @classmethod
    def parse(cls, value: "str | StartPosition") -> "StartPosition":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ConfigValidationError(
                f"start_position must be one of {[p.value for p in cls]}, got '{value}'"
            ) from None


class CheckpointMode(Enum):
    """Policy controlling when consumer progress is committed."""

    MANUAL = "manual"
    RECORD = "record"
    BATCH = "batch"
    PARTITION_COUNT = "partition_count"
    TIME = "time"

    @classmethod
    def parse(cls, value: "str | CheckpointMode") -> "CheckpointMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ConfigValidationError(
                f"checkpoint mode must be one of {[m.value for m in cls]}, got '{value}'"
            ) from None


@dataclass(frozen=True)
class CheckpointConfig:
    """Checkpoint policy read by the processor callback.

    Attributes:
        mode: When to checkpoint
        count: Events per partition between checkpoints (PARTITION_COUNT)
        interval: Seconds between checkpoints per partition (TIME)
    """

    mode: CheckpointMode = CheckpointMode.BATCH
    count: int = 0
    interval: float = 0.0

    def __post_init__(self) -> None:
        if self.mode is CheckpointMode.PARTITION_COUNT and self.count <= 0:
            raise ConfigValidationError(
                f"checkpoint count must be > 0 for PARTITION_COUNT mode, got {self.count}"
            )
        if self.mode is CheckpointMode.TIME and self.interval <= 0:
            raise ConfigValidationError(
                f"checkpoint interval must be > 0 for TIME mode, got {self.interval}"
            )
