"""
Property locator over Azure App Configuration.

Components:
    - ConfigStore / AppConfigurationProperties: Stores, labels, contexts
    - ConfigServiceOperations: Key listing seam; AzureConfigServiceOperations
      is the azure-appconfiguration implementation
    - NamedPropertySource / CompositePropertySource: Loaded key-values
    - PropertyLocator: Context generation, precedence and fail-fast loading
"""

from azure_binding.appconfig.locator import PROPERTY_SOURCE_NAME, PropertyLocator
from azure_binding.appconfig.models import EnvironmentView, KeyValueItem, QueryOptions
from azure_binding.appconfig.operations import (
    AzureConfigServiceOperations,
    ConfigServiceOperations,
)
from azure_binding.appconfig.properties import (
    EMPTY_LABEL,
    AppConfigurationProperties,
    ConfigStore,
)
from azure_binding.appconfig.property_source import (
    CompositePropertySource,
    NamedPropertySource,
)

__all__ = [
    "EMPTY_LABEL",
    "PROPERTY_SOURCE_NAME",
    "AppConfigurationProperties",
    "AzureConfigServiceOperations",
    "CompositePropertySource",
    "ConfigServiceOperations",
    "ConfigStore",
    "EnvironmentView",
    "KeyValueItem",
    "NamedPropertySource",
    "PropertyLocator",
    "QueryOptions",
]
