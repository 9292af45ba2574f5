"""Key listing against App Configuration stores.

``ConfigServiceOperations`` is the seam the property sources fetch through.
``AzureConfigServiceOperations`` implements it with the azure-appconfiguration
SDK, one client per store, created on first use.
"""

import logging
from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from azure.appconfiguration import AzureAppConfigurationClient
from azure.core.exceptions import AzureError

from azure_binding import USER_AGENT
from azure_binding.appconfig.models import KeyValueItem, QueryOptions
from azure_binding.common.memoizer import memoize
from azure_binding.eventhub.diagnostics import mask_connection_string
from core.errors.exceptions import ConfigFetchError, ConfigValidationError
from core.security.ssl_utils import get_ca_bundle_kwargs

logger = logging.getLogger(__name__)


@runtime_checkable
class ConfigServiceOperations(Protocol):
    def get_keys(self, store_name: str, query_options: QueryOptions) -> list[KeyValueItem]: ...


class AzureConfigServiceOperations:
    """Lists key-values through AzureAppConfigurationClient.

    Args:
        connection_strings: Store name -> connection string
        user_agent: Appended to the SDK user agent of every client
    """

    def __init__(self, connection_strings: Mapping[str, str], user_agent: str = USER_AGENT):
        self._connection_strings = dict(connection_strings)
        self._user_agent = user_agent
        self._clients: dict[str, AzureAppConfigurationClient] = {}
        self._client_creator = memoize(self._clients, self._create_client)

    def _create_client(self, store_name: str) -> AzureAppConfigurationClient:
        connection_string = self._connection_strings.get(store_name)
        if not connection_string:
            raise ConfigValidationError(
                f"No connection string configured for App Configuration store '{store_name}'"
            )
        logger.info(
            "Creating App Configuration client",
            extra={
                "store_name": store_name,
                "connection_string_masked": mask_connection_string(connection_string),
            },
        )
        return AzureAppConfigurationClient.from_connection_string(
            connection_string, user_agent=self._user_agent, **get_ca_bundle_kwargs()
        )

    def get_keys(self, store_name: str, query_options: QueryOptions) -> list[KeyValueItem]:
        client = self._client_creator(store_name)
        try:
            settings = client.list_configuration_settings(
                key_filter=query_options.key_filter,
                label_filter=query_options.label_filter,
            )
            items = [
                KeyValueItem(
                    key=setting.key,
                    value=setting.value,
                    label=setting.label,
                    content_type=setting.content_type,
                    etag=setting.etag,
                )
                for setting in settings
            ]
        except AzureError as e:
            raise ConfigFetchError(
                f"Failed to list key-values from store '{store_name}'",
                cause=e,
                context={
                    "store_name": store_name,
                    "key_filter": query_options.key_filter,
                    "label_filter": query_options.label_filter,
                },
            ) from e

        logger.debug(
            "Listed key-values",
            extra={"store_name": store_name, "key_count": len(items), "context": query_options.key_filter},
        )
        return items

    def close(self) -> None:
        for client in list(self._clients.values()):
            client.close()
        self._clients.clear()


__all__ = ["AzureConfigServiceOperations", "ConfigServiceOperations"]
