"""Shared fixtures for Event Hub test modules.

Provides an in-memory transport whose clients, partition senders and
processor hosts record every call.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from azure_binding.eventhub.connection import EventHubConnectionStringProvider
from azure_binding.eventhub.factory import ClientFactory

NAMESPACE_CONN_STR = (
    "Endpoint=sb://test-ns.servicebus.windows.net/;"
    "SharedAccessKeyName=RootManageSharedAccessKey;SharedAccessKey=secret"
)
CHECKPOINT_CONN_STR = (
    "DefaultEndpointsProtocol=https;AccountName=leases;AccountKey=secret;"
    "EndpointSuffix=core.windows.net"
)


def make_partition_sender(partition_id: str) -> MagicMock:
    sender = MagicMock(name=f"sender-{partition_id}")
    sender.partition_id = partition_id
    sender.send = AsyncMock()
    sender.close = AsyncMock()
    return sender


def make_client(eventhub_name: str) -> MagicMock:
    client = MagicMock(name=f"client-{eventhub_name}")
    client.eventhub_name = eventhub_name
    client.user_agent = "azure-binding/test"
    client.closed = False
    client.send = AsyncMock()
    client.close = AsyncMock()
    client.create_partition_sender = MagicMock(side_effect=make_partition_sender)
    return client


def make_processor_host(host_name, eventhub_name, consumer_group, **_) -> MagicMock:
    host = MagicMock(name=f"host-{eventhub_name}-{consumer_group}")
    host.host_name = host_name
    host.eventhub_name = eventhub_name
    host.consumer_group = consumer_group
    host.register_event_processor = AsyncMock()
    host.unregister_event_processor = AsyncMock()
    return host


@pytest.fixture
def transport():
    transport = MagicMock(name="transport")
    transport.create_client = MagicMock(
        side_effect=lambda connection_string, eventhub_name: make_client(eventhub_name)
    )
    transport.create_processor_host = MagicMock(side_effect=make_processor_host)
    return transport


@pytest.fixture
def connection_provider():
    return EventHubConnectionStringProvider(namespace_connection_string=NAMESPACE_CONN_STR)


@pytest.fixture
def factory(transport, connection_provider):
    return ClientFactory(
        transport=transport,
        connection_string_provider=connection_provider,
        checkpoint_connection_string=CHECKPOINT_CONN_STR,
        host_name_factory=lambda: "test-host-brave-tiger",
    )
