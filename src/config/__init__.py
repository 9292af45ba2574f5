"""Configuration loading for the Azure bindings.

Configuration is loaded from a single config/config.yaml file.

Configuration Structure
-----------------------

config.yaml
    azure:       # Optional account settings (credential file, resource group, region)
    eventhub:    # Connection strings, checkpoint storage, start position, checkpoint policy
    appconfig:   # App Configuration stores, default context, profile separator, fail fast

Main Functions
--------------

    - load_config(): Load binding configuration from YAML
    - get_config(): Get or load singleton config instance
    - set_config(): Replace the singleton (tests)
    - reset_config(): Reset singleton config instance

Usage Examples
--------------

Load configuration:
    >>> from config import load_config
    >>>
    >>> config = load_config()
    >>> config.eventhub.start_position
    <StartPosition.LATEST: 'latest'>

Custom config path:
    >>> from pathlib import Path
    >>> config = load_config(config_path=Path("/custom/path/config.yaml"))

Configuration Priority
---------------------

Settings are merged in the following priority (highest to lowest):

1. ``overrides`` passed to load_config (deep-merged)
2. YAML configuration file, with ${VAR} environment expansion
3. Dataclass defaults
"""

from config.config import (
    AzureProperties,
    BindingConfig,
    EventHubProperties,
    get_config,
    load_config,
    reset_config,
    set_config,
)

__all__ = [
    "load_config",
    "get_config",
    "set_config",
    "reset_config",
    "AzureProperties",
    "BindingConfig",
    "EventHubProperties",
]
