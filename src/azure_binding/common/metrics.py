"""
Prometheus metrics for the Event Hub and App Configuration bindings.

Focused on essential metrics:
- Messages sent per route and send errors
- Remote handles created by the client factory
- Checkpoints written by processors
- Property sources loaded at bootstrap
"""

import logging

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge

logger = logging.getLogger(__name__)


def _create_counter(name: str, description: str, labelnames, registry: CollectorRegistry = REGISTRY):
    try:
        return Counter(name, description, labelnames=labelnames, registry=registry)
    except ValueError:
        # Already registered, e.g. module reloaded in tests
        return registry._names_to_collectors[name]


def _create_gauge(name: str, description: str, labelnames=(), registry: CollectorRegistry = REGISTRY):
    try:
        return Gauge(name, description, labelnames=labelnames, registry=registry)
    except ValueError:
        return registry._names_to_collectors[name]


# =============================================================================
# Event Hub
# =============================================================================

messages_sent_counter = _create_counter(
    "azure_binding_eventhub_messages_sent",
    "Total number of messages handed to Event Hub",
    labelnames=["eventhub", "route"],
)

send_errors_counter = _create_counter(
    "azure_binding_eventhub_send_errors",
    "Total Event Hub send failures by error type",
    labelnames=["eventhub", "error_type"],
)

handles_created_counter = _create_counter(
    "azure_binding_eventhub_handles_created",
    "Total clients, partition senders and processor hosts created",
    labelnames=["kind"],
)

checkpoints_counter = _create_counter(
    "azure_binding_eventhub_checkpoints",
    "Total checkpoints written by event processors",
    labelnames=["eventhub", "consumer_group"],
)

# =============================================================================
# App Configuration
# =============================================================================

property_sources_gauge = _create_gauge(
    "azure_binding_appconfig_property_sources",
    "Number of property sources loaded by the last locate call",
)


def record_messages_sent(eventhub_name: str, route: str, count: int) -> None:
    messages_sent_counter.labels(eventhub=eventhub_name, route=route).inc(count)


def record_send_error(eventhub_name: str, error_type: str) -> None:
    send_errors_counter.labels(eventhub=eventhub_name, error_type=error_type).inc()


def record_handle_created(kind: str) -> None:
    handles_created_counter.labels(kind=kind).inc()


def record_checkpoint(eventhub_name: str, consumer_group: str) -> None:
    checkpoints_counter.labels(eventhub=eventhub_name, consumer_group=consumer_group).inc()


def update_property_sources(count: int) -> None:
    property_sources_gauge.set(count)


__all__ = [
    "record_messages_sent",
    "record_send_error",
    "record_handle_created",
    "record_checkpoint",
    "update_property_sources",
]
