"""Value objects, header names and the single-flight memoizer shared by the bindings."""

from azure_binding.common.headers import AzureHeaders, EventHubHeaders
from azure_binding.common.memoizer import memoize
from azure_binding.common.types import (
    CheckpointConfig,
    CheckpointMode,
    Message,
    PartitionSupplier,
    StartPosition,
)

__all__ = [
    "AzureHeaders",
    "CheckpointConfig",
    "CheckpointMode",
    "EventHubHeaders",
    "Message",
    "PartitionSupplier",
    "StartPosition",
    "memoize",
]
