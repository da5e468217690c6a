"""Tests for config/loader.py module.

Covers:
- _load_yaml() function
- _deep_merge() function
- load_config() precedence and validation
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from codebrowser.config.loader import (
    GLOBAL_CONFIG_PATH,
    _deep_merge,
    _load_yaml,
    load_config,
)
from codebrowser.config.models import LoggingConfig
from codebrowser.core.errors import ConfigError, ErrorCode


@pytest.fixture
def no_global_config(tmp_path: Path) -> Any:
    """Point the global config at a file that does not exist."""
    with patch("codebrowser.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
        yield


class TestLoadYaml:
    """Tests for _load_yaml function."""

    def test_returns_empty_dict_for_missing_file(self, tmp_path: Path) -> None:
        """Returns empty dict when file doesn't exist."""
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_loads_valid_yaml(self, tmp_path: Path) -> None:
        """Loads valid YAML content."""
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("search:\n  default_engine: ripgrep\n")

        assert _load_yaml(yaml_file) == {"search": {"default_engine": "ripgrep"}}

    def test_returns_empty_for_empty_file(self, tmp_path: Path) -> None:
        """Returns empty dict for empty file."""
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")

        assert _load_yaml(yaml_file) == {}

    def test_raises_config_error_for_invalid_yaml(self, tmp_path: Path) -> None:
        """Raises ConfigError for invalid YAML syntax."""
        yaml_file = tmp_path / "invalid.yaml"
        yaml_file.write_text("logging:\n  level:\n    - invalid: [unclosed")

        with pytest.raises(ConfigError) as exc_info:
            _load_yaml(yaml_file)
        assert exc_info.value.code is ErrorCode.CONFIG_PARSE_ERROR

    def test_raises_config_error_for_non_mapping(self, tmp_path: Path) -> None:
        """A list at the top level is not a config."""
        yaml_file = tmp_path / "list.yaml"
        yaml_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError):
            _load_yaml(yaml_file)


class TestDeepMerge:
    """Tests for _deep_merge function."""

    def test_override_wins(self) -> None:
        """Override values replace base values."""
        assert _deep_merge({"a": 1, "b": 2}, {"b": 3}) == {"a": 1, "b": 3}

    def test_nested_merge(self) -> None:
        """Nested dicts are merged recursively."""
        base = {"server": {"host": "0.0.0.0", "port": 9000}}
        override = {"server": {"port": 9100}}
        assert _deep_merge(base, override) == {"server": {"host": "0.0.0.0", "port": 9100}}

    def test_override_replaces_non_dict(self) -> None:
        """Non-dict override replaces dict base."""
        base: dict[str, Any] = {"a": {"nested": 1}}
        override: dict[str, Any] = {"a": "simple"}
        assert _deep_merge(base, override) == {"a": "simple"}

    def test_does_not_mutate_base(self) -> None:
        """Base dict is not mutated."""
        base = {"a": 1}
        _deep_merge(base, {"b": 2})
        assert base == {"a": 1}


@pytest.mark.usefixtures("no_global_config")
class TestLoadConfig:
    """Tests for load_config function."""

    def test_returns_default_config_when_no_files(self, tmp_path: Path) -> None:
        """Returns default config when no config files exist."""
        config = load_config(tmp_path)

        assert config.logging.level == "INFO"
        assert config.server.port == 8088
        assert config.search.default_engine == "zoekt"
        assert config.intelligence.fallback_limit == 10

    def test_loads_data_dir_config(self, tmp_path: Path) -> None:
        """Loads config.yaml from the data directory."""
        (tmp_path / "config.yaml").write_text(
            "search:\n  default_engine: ripgrep\n  zoekt_url: http://zoekt:6070/\n"
        )

        config = load_config(tmp_path)

        assert config.search.default_engine == "ripgrep"
        assert config.search.zoekt_url == "http://zoekt:6070"

    def test_global_config_is_overridden_by_data_dir(self, tmp_path: Path) -> None:
        """Data-dir config wins over the global file, key by key."""
        global_file = tmp_path / "global.yaml"
        global_file.write_text("server:\n  host: 0.0.0.0\n  port: 9000\n")
        data_dir = tmp_path / "data"
        data_dir.mkdir()
        (data_dir / "config.yaml").write_text("server:\n  port: 9100\n")

        with patch("codebrowser.config.loader.GLOBAL_CONFIG_PATH", global_file):
            config = load_config(data_dir)

        assert config.server.host == "0.0.0.0"
        assert config.server.port == 9100

    def test_env_vars_override_yaml(self, tmp_path: Path) -> None:
        """Environment variables override YAML config."""
        (tmp_path / "config.yaml").write_text("logging:\n  level: INFO\n")

        with patch.dict(os.environ, {"CODEBROWSER__LOGGING__LEVEL": "WARNING"}):
            config = load_config(tmp_path)

        assert config.logging.level == "WARNING"

    def test_kwargs_override_all(self, tmp_path: Path) -> None:
        """Keyword arguments override everything."""
        with patch.dict(os.environ, {"CODEBROWSER__LOGGING__LEVEL": "WARNING"}):
            config = load_config(tmp_path, logging=LoggingConfig(level="ERROR"))

        assert config.logging.level == "ERROR"

    def test_nested_kwargs_merge_with_yaml(self, tmp_path: Path) -> None:
        """Partial section overrides keep the other keys of the section."""
        (tmp_path / "config.yaml").write_text("server:\n  host: 0.0.0.0\n")

        config = load_config(tmp_path, server={"port": 9200})

        assert config.server.host == "0.0.0.0"
        assert config.server.port == 9200

    @pytest.mark.parametrize(
        "yaml_text",
        [
            "server:\n  port: -1\n",
            "server:\n  request_timeout_sec: 0\n",
            "search:\n  default_engine: grep\n",
            "intelligence:\n  fallback_limit: 0\n",
        ],
    )
    def test_raises_config_error_for_invalid_value(self, tmp_path: Path, yaml_text: str) -> None:
        """Raises ConfigError for invalid config values."""
        (tmp_path / "config.yaml").write_text(yaml_text)

        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path)
        assert exc_info.value.code is ErrorCode.CONFIG_INVALID_VALUE


class TestGlobalConfigPath:
    """Tests for GLOBAL_CONFIG_PATH constant."""

    def test_is_in_user_config(self) -> None:
        """Path is in the user's config directory."""
        assert GLOBAL_CONFIG_PATH.name == "config.yaml"
        assert GLOBAL_CONFIG_PATH.parent.name == "codebrowser"
