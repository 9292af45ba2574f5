"""Explicit wiring of the bindings from a loaded BindingConfig.

The host process builds one ClientFactory, hands it to every template and
awaits ``factory.destroy()`` on shutdown:

    config = load_config()
    factory = build_client_factory(config)
    template = build_template(config, factory)
    try:
        await template.send_async("orders", Message(b"..."))
    finally:
        await factory.destroy()
"""

import logging

from azure_binding.appconfig.locator import PropertyLocator
from azure_binding.appconfig.models import EnvironmentView
from azure_binding.appconfig.operations import AzureConfigServiceOperations, ConfigServiceOperations
from azure_binding.appconfig.property_source import CompositePropertySource
from azure_binding.eventhub.connection import EventHubConnectionStringProvider
from azure_binding.eventhub.factory import ClientFactory
from azure_binding.eventhub.sdk import AzureEventHubTransport
from azure_binding.eventhub.template import EventHubTemplate
from azure_binding.eventhub.transport import EventHubTransport
from config.config import BindingConfig

logger = logging.getLogger(__name__)


def build_client_factory(
    config: BindingConfig,
    transport: EventHubTransport | None = None,
) -> ClientFactory:
    """Create the process-wide ClientFactory.

    Raises:
        ConfigValidationError: If no checkpoint storage connection string is configured
    """
    if transport is None:
        transport = AzureEventHubTransport()

    provider = EventHubConnectionStringProvider(
        namespace_connection_string=config.eventhub.connection_string,
        connection_strings=config.eventhub.connection_strings,
    )
    factory = ClientFactory(
        transport=transport,
        connection_string_provider=provider,
        checkpoint_connection_string=config.eventhub.checkpoint_storage_connection_string,
    )
    logger.info("Client factory created")
    return factory


def build_template(config: BindingConfig, factory: ClientFactory) -> EventHubTemplate:
    """Create a template applying the configured start position and checkpoint policy."""
    template = EventHubTemplate(
        factory,
        max_batch_size=config.eventhub.max_batch_size,
        prefetch=config.eventhub.prefetch,
    )
    template.start_position = config.eventhub.start_position
    template.checkpoint_config = config.eventhub.checkpoint
    return template


def build_property_locator(
    config: BindingConfig,
    operations: ConfigServiceOperations | None = None,
) -> PropertyLocator:
    """Create a locator over the configured App Configuration stores."""
    if operations is None:
        operations = AzureConfigServiceOperations(config.appconfig.connection_strings)
    return PropertyLocator(operations, config.appconfig)


def locate_properties(
    config: BindingConfig,
    environment: EnvironmentView,
    operations: ConfigServiceOperations | None = None,
) -> CompositePropertySource:
    """Load every configured store once.

    Store clients opened here are closed before returning. Operations passed
    in by the caller stay open.

    Raises:
        ConfigFetchError: On the first failed fetch when fail_fast is set
    """
    owns_operations = operations is None
    locator = build_property_locator(config, operations)
    try:
        return locator.locate(environment)
    finally:
        if owns_operations:
            locator.close()


__all__ = ["build_client_factory", "build_property_locator", "build_template", "locate_properties"]
