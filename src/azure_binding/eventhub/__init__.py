"""
Event Hub client factory, send pipeline and consumer registration.

Components:
    - ClientFactory: Memoized clients, partition senders and processor hosts
    - EventHubTemplate: send_async routing and register/unregister of consumers
    - EventHubProcessor: Checkpointing callbacks driven by a processor host
    - EventHubMessageConverter: Message <-> EventData
    - EventHubConnectionStringProvider: Event hub name -> connection string

The azure-eventhub SDK adapters live in ``azure_binding.eventhub.sdk``.
"""

from azure_binding.eventhub.connection import (
    ConnectionStringProvider,
    EventHubConnectionStringProvider,
)
from azure_binding.eventhub.converter import EventHubMessageConverter
from azure_binding.eventhub.factory import ClientFactory
from azure_binding.eventhub.processor import (
    Checkpointer,
    EventHubProcessor,
    EventProcessorOptions,
)
from azure_binding.eventhub.template import EventHubTemplate

__all__ = [
    "Checkpointer",
    "ClientFactory",
    "ConnectionStringProvider",
    "EventHubConnectionStringProvider",
    "EventHubMessageConverter",
    "EventHubProcessor",
    "EventHubTemplate",
    "EventProcessorOptions",
]
