"""Binding configuration from YAML file.

Loads from config/config.yaml with all settings in one place:
- Azure account settings (optional)
- Event Hub connection strings, start position and checkpoint policy
- App Configuration stores and context settings

Environment variables ARE supported using ${VAR_NAME} and ${VAR_NAME:-default}
syntax in YAML files.
"""

import json
import logging
import os
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from azure_binding.appconfig.properties import AppConfigurationProperties, ConfigStore
from azure_binding.common.types import CheckpointConfig, CheckpointMode, StartPosition
from core.errors.exceptions import ConfigValidationError

# Configure module logger
logger = logging.getLogger(__name__)


def load_yaml(path: Path) -> Dict[str, Any]:
    """Load YAML file and return dict."""
    if not path.exists():
        return {}
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR_NAME} and ${VAR_NAME:-default} environment variables in config data."""
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        pattern = r"\$\{([^}:]+)(?::-(([^}]*))?)?\}"

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else match.group(0)
            return os.getenv(var_name, default_value)

        return re.sub(pattern, replacer, data)
    else:
        return data


# Default config file: config/config.yaml in src/ directory
DEFAULT_CONFIG_FILE = Path(__file__).parent.parent / "config" / "config.yaml"


@dataclass
class AzureProperties:
    """Azure account settings. All three identifiers are required when the section is present."""

    credential_file_path: str = ""
    resource_group: str = ""
    region: str = ""
    auto_create_resources: bool = False

    def validate(self) -> None:
        for key in ("credential_file_path", "resource_group", "region"):
            if not getattr(self, key):
                raise ConfigValidationError(f"azure.{key} must be provided")


@dataclass
class EventHubProperties:
    """Event Hub connection and consumer settings.

    Connection strings are namespace-level (no EntityPath); per-hub entries
    in ``connection_strings`` take precedence.
    """

    connection_string: str = ""
    connection_strings: Dict[str, str] = field(default_factory=dict)
    checkpoint_storage_connection_string: str = ""
    start_position: StartPosition = StartPosition.LATEST
    checkpoint: CheckpointConfig = field(default_factory=CheckpointConfig)
    max_batch_size: int = 300
    prefetch: int = 300

    def validate(self) -> None:
        if self.max_batch_size < 1:
            raise ConfigValidationError(
                f"eventhub: max_batch_size must be >= 1, got {self.max_batch_size}"
            )
        if self.prefetch < 0:
            raise ConfigValidationError(f"eventhub: prefetch must be >= 0, got {self.prefetch}")


@dataclass
class BindingConfig:
    """Complete binding configuration."""

    azure: Optional[AzureProperties] = None
    eventhub: EventHubProperties = field(default_factory=EventHubProperties)
    appconfig: AppConfigurationProperties = field(default_factory=AppConfigurationProperties)

    def validate(self) -> None:
        """Validate configuration for correctness and constraints."""
        if self.azure is not None:
            self.azure.validate()
        self.eventhub.validate()


def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge overlay into base dict."""
    result = base.copy()
    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _to_int(value: Any, key: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigValidationError(f"{key} must be an integer, got '{value}'") from None


def _to_float(value: Any, key: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigValidationError(f"{key} must be a number, got '{value}'") from None


def _parse_azure(data: Optional[Dict[str, Any]]) -> Optional[AzureProperties]:
    if data is None:
        return None
    return AzureProperties(
        credential_file_path=data.get("credential_file_path", "") or "",
        resource_group=data.get("resource_group", "") or "",
        region=data.get("region", "") or "",
        auto_create_resources=bool(data.get("auto_create_resources", False)),
    )


def _parse_checkpoint(data: Dict[str, Any]) -> CheckpointConfig:
    return CheckpointConfig(
        mode=CheckpointMode.parse(data.get("mode", CheckpointMode.BATCH.value)),
        count=_to_int(data.get("count", 0), "eventhub.checkpoint.count"),
        interval=_to_float(data.get("interval_seconds", 0), "eventhub.checkpoint.interval_seconds"),
    )


def _parse_eventhub(data: Dict[str, Any]) -> EventHubProperties:
    connection_strings = data.get("connection_strings") or {}
    if not isinstance(connection_strings, dict):
        raise ConfigValidationError("eventhub.connection_strings must be a mapping of name to string")

    return EventHubProperties(
        connection_string=data.get("connection_string", "") or "",
        connection_strings={str(k): str(v) for k, v in connection_strings.items()},
        checkpoint_storage_connection_string=data.get("checkpoint_storage_connection_string", "") or "",
        start_position=StartPosition.parse(data.get("start_position", StartPosition.LATEST.value)),
        checkpoint=_parse_checkpoint(data.get("checkpoint") or {}),
        max_batch_size=_to_int(data.get("max_batch_size", 300), "eventhub.max_batch_size"),
        prefetch=_to_int(data.get("prefetch", 300), "eventhub.prefetch"),
    )


def _parse_store(data: Dict[str, Any], index: int) -> ConfigStore:
    if not isinstance(data, dict) or not data.get("name"):
        raise ConfigValidationError(f"appconfig.stores[{index}]: name is required")
    return ConfigStore(
        name=data["name"],
        prefix=data.get("prefix", "") or "",
        labels=data.get("label", data.get("labels")),
        connection_string=data.get("connection_string", "") or "",
    )


def _parse_appconfig(data: Dict[str, Any]) -> AppConfigurationProperties:
    stores: List[ConfigStore] = [
        _parse_store(store, i) for i, store in enumerate(data.get("stores") or [])
    ]
    return AppConfigurationProperties(
        stores=tuple(stores),
        default_context=data.get("default_context", "application"),
        profile_separator=data.get("profile_separator", "_"),
        name=data.get("name") or None,
        fail_fast=bool(data.get("fail_fast", True)),
    )


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> BindingConfig:
    """Load binding configuration from config.yaml file.

    Environment variables ARE supported using ${VAR_NAME} syntax in YAML files.

    Raises:
        FileNotFoundError: If the config file does not exist
        ConfigValidationError: If a section holds invalid values
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_FILE

    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path}\n" f"Expected file: config/config.yaml"
        )

    logger.info(f"Loading configuration from file: {config_path}")
    yaml_data = load_yaml(config_path)
    yaml_data = _expand_env_vars(yaml_data)

    if overrides:
        logger.debug(f"Applying overrides: {list(overrides.keys())}")
        yaml_data = _deep_merge(yaml_data, overrides)

    config = BindingConfig(
        azure=_parse_azure(yaml_data.get("azure")),
        eventhub=_parse_eventhub(yaml_data.get("eventhub") or {}),
        appconfig=_parse_appconfig(yaml_data.get("appconfig") or {}),
    )

    logger.debug("Configuration loaded successfully:")
    logger.debug(f"  - Azure section configured: {config.azure is not None}")
    logger.debug(f"  - Event Hub start position: {config.eventhub.start_position.value}")
    logger.debug(f"  - App Configuration stores: {[s.name for s in config.appconfig.stores]}")

    logger.debug("Validating configuration...")
    config.validate()
    logger.debug("Configuration validation passed")

    return config


_binding_config: Optional[BindingConfig] = None


def get_config() -> BindingConfig:
    """Get or load the singleton binding config instance."""
    global _binding_config
    if _binding_config is None:
        _binding_config = load_config()
    return _binding_config


def set_config(config: BindingConfig) -> None:
    """Set the singleton binding config instance (useful for testing)."""
    global _binding_config
    _binding_config = config


def reset_config() -> None:
    """Reset the singleton config instance (forces reload on next get_config() call)."""
    global _binding_config
    _binding_config = None


def _cli_main() -> int:
    """CLI entry point for config validation and debugging."""
    import argparse

    from dotenv import load_dotenv

    parser = argparse.ArgumentParser(
        description="Azure Binding Configuration Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Validate configuration
  python -m config.config --validate

  # Show merged configuration
  python -m config.config --show-merged

  # Use custom config file
  python -m config.config --config /path/to/config.yaml --validate

  # JSON output for automation
  python -m config.config --validate --json
        """,
    )

    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate configuration structure and completeness",
    )
    parser.add_argument(
        "--show-merged",
        action="store_true",
        help="Display merged configuration as YAML",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config.yaml file (default: src/config/config.yaml)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output in JSON format instead of human-readable",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s: %(message)s",
    )

    if not args.validate and not args.show_merged:
        parser.print_help()
        return 0

    load_dotenv()

    try:
        config = load_config(config_path=args.config)

        config_path = args.config or DEFAULT_CONFIG_FILE
        config_dict = _expand_env_vars(load_yaml(config_path))

        output = {}

        if args.validate:
            # Validation happens during load_config(), if we got here it passed
            if args.json:
                output["validation"] = {
                    "passed": True,
                    "errors": [],
                }
            else:
                print("✓ Configuration validation passed")
                if config.azure is not None:
                    print("  - Azure section: OK")
                print(f"  - Event Hub: OK (start position {config.eventhub.start_position.value})")
                print(f"  - App Configuration stores: {len(config.appconfig.stores)}")

        if args.show_merged:
            if args.json:
                output["merged_config"] = config_dict
            else:
                print("\nConfiguration:")
                print("=" * 80)
                print(yaml.dump(config_dict, default_flow_style=False, sort_keys=False))
                print("=" * 80)

        if args.json:
            print(json.dumps(output, indent=2))

        return 0

    except FileNotFoundError as e:
        if args.json:
            print(json.dumps({"error": str(e)}))
        else:
            print(f"✗ Error: {e}", file=sys.stderr)
        return 1

    except ConfigValidationError as e:
        if args.json:
            print(json.dumps({"error": str(e)}))
        else:
            print(f"✗ Validation error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(_cli_main())
