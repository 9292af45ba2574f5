import json
import os
import sys
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from azure_binding.appconfig.properties import EMPTY_LABEL
from azure_binding.common.types import CheckpointMode, StartPosition
from config.config import (
    DEFAULT_CONFIG_FILE,
    AzureProperties,
    BindingConfig,
    EventHubProperties,
    _cli_main,
    _deep_merge,
    _expand_env_vars,
    get_config,
    load_config,
    load_yaml,
    reset_config,
    set_config,
)
from core.errors.exceptions import ConfigValidationError


def _write_config(tmp_path, data):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(yaml.dump(data))
    return config_file


MINIMAL = {
    "eventhub": {
        "connection_string": "Endpoint=sb://ns.servicebus.windows.net/;SharedAccessKeyName=k;SharedAccessKey=s",
        "checkpoint_storage_connection_string": "DefaultEndpointsProtocol=https;AccountName=a;AccountKey=k",
    }
}


# =========================================================================
# load_yaml
# =========================================================================


class TestLoadYaml:
    def test_returns_empty_dict_for_nonexistent_file(self):
        assert load_yaml(Path("/nonexistent/path/config.yaml")) == {}

    def test_loads_yaml_file(self, tmp_path):
        config_file = tmp_path / "test.yaml"
        config_file.write_text("key: value\nnested:\n  a: 1\n")
        assert load_yaml(config_file) == {"key": "value", "nested": {"a": 1}}

    def test_empty_file_returns_empty_dict(self, tmp_path):
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")
        assert load_yaml(config_file) == {}


# =========================================================================
# _expand_env_vars / _deep_merge
# =========================================================================


class TestExpandEnvVars:
    def test_expands_variable(self):
        with patch.dict(os.environ, {"HUB_CONN": "conn"}):
            assert _expand_env_vars("${HUB_CONN}") == "conn"

    def test_uses_default_when_unset(self):
        with patch.dict(os.environ, {}, clear=True):
            assert _expand_env_vars("${MISSING:-latest}") == "latest"

    def test_empty_default(self):
        with patch.dict(os.environ, {}, clear=True):
            assert _expand_env_vars("${MISSING:-}") == ""

    def test_leaves_unset_without_default(self):
        with patch.dict(os.environ, {}, clear=True):
            assert _expand_env_vars("${MISSING}") == "${MISSING}"

    def test_recurses_into_containers(self):
        with patch.dict(os.environ, {"A": "1"}):
            assert _expand_env_vars({"x": ["${A}", {"y": "${A}"}], "n": 3}) == {
                "x": ["1", {"y": "1"}],
                "n": 3,
            }


class TestDeepMerge:
    def test_merges_nested(self):
        base = {"eventhub": {"prefetch": 300, "max_batch_size": 300}}
        result = _deep_merge(base, {"eventhub": {"prefetch": 10}})
        assert result == {"eventhub": {"prefetch": 10, "max_batch_size": 300}}
        assert base["eventhub"]["prefetch"] == 300

    def test_replaces_non_dict(self):
        assert _deep_merge({"a": [1]}, {"a": [2]}) == {"a": [2]}


# =========================================================================
# load_config
# =========================================================================


class TestLoadConfig:
    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_defaults(self, tmp_path):
        config = load_config(_write_config(tmp_path, MINIMAL))

        assert config.azure is None
        assert config.eventhub.start_position is StartPosition.LATEST
        assert config.eventhub.checkpoint.mode is CheckpointMode.BATCH
        assert config.eventhub.max_batch_size == 300
        assert config.eventhub.prefetch == 300
        assert config.appconfig.stores == ()
        assert config.appconfig.default_context == "application"
        assert config.appconfig.profile_separator == "_"
        assert config.appconfig.fail_fast is True

    def test_eventhub_section(self, tmp_path):
        data = {
            "eventhub": {
                **MINIMAL["eventhub"],
                "connection_strings": {"orders": "Endpoint=sb://other/"},
                "start_position": "EARLIEST",
                "checkpoint": {"mode": "time", "interval_seconds": 5},
                "max_batch_size": "50",
                "prefetch": 0,
            }
        }
        config = load_config(_write_config(tmp_path, data))

        assert config.eventhub.connection_strings == {"orders": "Endpoint=sb://other/"}
        assert config.eventhub.start_position is StartPosition.EARLIEST
        assert config.eventhub.checkpoint.mode is CheckpointMode.TIME
        assert config.eventhub.checkpoint.interval == 5.0
        assert config.eventhub.max_batch_size == 50
        assert config.eventhub.prefetch == 0

    def test_appconfig_section(self, tmp_path):
        data = {
            **MINIMAL,
            "appconfig": {
                "name": "orders-service",
                "default_context": "shared",
                "profile_separator": ".",
                "fail_fast": False,
                "stores": [
                    {"name": "primary", "connection_string": "Endpoint=https://p"},
                    {"name": "override", "prefix": "/svc", "label": "v1,v2"},
                ],
            },
        }
        config = load_config(_write_config(tmp_path, data))
        appconfig = config.appconfig

        assert appconfig.name == "orders-service"
        assert appconfig.default_context == "shared"
        assert appconfig.profile_separator == "."
        assert appconfig.fail_fast is False
        assert [s.name for s in appconfig.stores] == ["primary", "override"]
        assert appconfig.stores[0].labels == (EMPTY_LABEL,)
        assert appconfig.stores[1].labels == ("v1", "v2")
        assert appconfig.stores[1].prefix == "/svc"
        assert appconfig.connection_strings["primary"] == "Endpoint=https://p"

    def test_blank_name_is_none(self, tmp_path):
        data = {**MINIMAL, "appconfig": {"name": ""}}
        assert load_config(_write_config(tmp_path, data)).appconfig.name is None

    def test_env_vars_expanded(self, tmp_path):
        data = {
            "eventhub": {
                "connection_string": "${TEST_HUB_CONN}",
                "checkpoint_storage_connection_string": "${TEST_CKPT_CONN:-fallback}",
            }
        }
        with patch.dict(os.environ, {"TEST_HUB_CONN": "from-env"}):
            config = load_config(_write_config(tmp_path, data))

        assert config.eventhub.connection_string == "from-env"
        assert config.eventhub.checkpoint_storage_connection_string == "fallback"

    def test_overrides_applied(self, tmp_path):
        config = load_config(
            _write_config(tmp_path, MINIMAL),
            overrides={"eventhub": {"prefetch": 10}},
        )
        assert config.eventhub.prefetch == 10
        assert config.eventhub.connection_string == MINIMAL["eventhub"]["connection_string"]

    def test_azure_section(self, tmp_path):
        data = {
            **MINIMAL,
            "azure": {
                "credential_file_path": "/secrets/azure.json",
                "resource_group": "rg",
                "region": "westus",
            },
        }
        config = load_config(_write_config(tmp_path, data))

        assert config.azure == AzureProperties("/secrets/azure.json", "rg", "westus", False)

    @pytest.mark.parametrize("missing", ["credential_file_path", "resource_group", "region"])
    def test_azure_section_requires_identifiers(self, tmp_path, missing):
        azure = {"credential_file_path": "/c", "resource_group": "rg", "region": "westus"}
        azure.pop(missing)
        with pytest.raises(ConfigValidationError, match=missing):
            load_config(_write_config(tmp_path, {**MINIMAL, "azure": azure}))

    @pytest.mark.parametrize(
        "eventhub,match",
        [
            ({"start_position": "middle"}, "start_position"),
            ({"checkpoint": {"mode": "sometimes"}}, "checkpoint mode"),
            ({"checkpoint": {"mode": "partition_count"}}, "count"),
            ({"max_batch_size": 0}, "max_batch_size"),
            ({"max_batch_size": "many"}, "max_batch_size"),
            ({"prefetch": -1}, "prefetch"),
            ({"connection_strings": ["a"]}, "connection_strings"),
        ],
    )
    def test_invalid_eventhub_values(self, tmp_path, eventhub, match):
        data = {"eventhub": {**MINIMAL["eventhub"], **eventhub}}
        with pytest.raises(ConfigValidationError, match=match):
            load_config(_write_config(tmp_path, data))

    def test_store_without_name(self, tmp_path):
        data = {**MINIMAL, "appconfig": {"stores": [{"name": "a"}, {"prefix": "/x"}]}}
        with pytest.raises(ConfigValidationError, match=r"stores\[1\]"):
            load_config(_write_config(tmp_path, data))

    def test_duplicate_store_names(self, tmp_path):
        data = {**MINIMAL, "appconfig": {"stores": [{"name": "a"}, {"name": "a"}]}}
        with pytest.raises(ConfigValidationError, match="Duplicate"):
            load_config(_write_config(tmp_path, data))

    def test_bundled_config_loads(self):
        with patch.dict(os.environ, {}, clear=True):
            config = load_config(DEFAULT_CONFIG_FILE)

        assert config.eventhub.start_position is StartPosition.LATEST
        assert [s.name for s in config.appconfig.stores] == ["config-store"]


# =========================================================================
# Singleton
# =========================================================================


class TestSingleton:
    def setup_method(self):
        reset_config()

    def teardown_method(self):
        reset_config()

    def test_set_and_get(self):
        config = BindingConfig(eventhub=EventHubProperties(prefetch=1))
        set_config(config)
        assert get_config() is config

    def test_loads_once(self):
        config = BindingConfig()
        with patch("config.config.load_config", return_value=config) as mock_load:
            assert get_config() is config
            assert get_config() is config
        mock_load.assert_called_once()

    def test_reset_forces_reload(self):
        set_config(BindingConfig())
        reset_config()
        with patch("config.config.load_config", return_value=BindingConfig()) as mock_load:
            get_config()
        mock_load.assert_called_once()


# =========================================================================
# CLI
# =========================================================================


class TestCli:
    def _run(self, monkeypatch, *args):
        monkeypatch.setattr(sys, "argv", ["config", *args])
        with patch("dotenv.load_dotenv"):
            return _cli_main()

    def test_no_action_prints_help(self, monkeypatch, capsys):
        assert self._run(monkeypatch) == 0
        assert "usage" in capsys.readouterr().out

    def test_validate_json(self, monkeypatch, capsys, tmp_path):
        config_file = _write_config(tmp_path, MINIMAL)
        assert self._run(monkeypatch, "--validate", "--json", "--config", str(config_file)) == 0
        output = json.loads(capsys.readouterr().out)
        assert output["validation"]["passed"] is True

    def test_show_merged_json(self, monkeypatch, capsys, tmp_path):
        config_file = _write_config(tmp_path, MINIMAL)
        assert self._run(monkeypatch, "--show-merged", "--json", "--config", str(config_file)) == 0
        output = json.loads(capsys.readouterr().out)
        assert output["merged_config"]["eventhub"]["connection_string"].startswith("Endpoint=")

    def test_missing_file(self, monkeypatch, capsys, tmp_path):
        assert self._run(monkeypatch, "--validate", "--json", "--config", str(tmp_path / "x.yaml")) == 1
        assert "error" in json.loads(capsys.readouterr().out)

    def test_validation_error(self, monkeypatch, capsys, tmp_path):
        config_file = _write_config(tmp_path, {"eventhub": {"prefetch": -5}})
        assert self._run(monkeypatch, "--validate", "--config", str(config_file)) == 1
        assert "Validation error" in capsys.readouterr().err
