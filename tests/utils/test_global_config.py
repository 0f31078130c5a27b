"""Tests for the global config file and CLI config resolution."""

import json

import pytest
from pydantic import ValidationError

from dumpdiff.cli._shared import resolve_config
from dumpdiff.utils.config import ConfigError, global_config_dir, load_global_config


def write_config(config_dir, data):
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "config.json").write_text(json.dumps(data) if not isinstance(data, str) else data)


class TestLoad:
    def test_env_override(self, isolated_config):
        assert global_config_dir() == isolated_config

    def test_missing_file(self):
        assert load_global_config() == {}

    def test_unknown_keys_ignored(self, isolated_config):
        write_config(isolated_config, {"lines": 10, "colour": "blue"})
        assert load_global_config() == {"lines": 10}

    def test_invalid_json(self, isolated_config):
        write_config(isolated_config, "{not json")
        with pytest.raises(ConfigError, match="Cannot read config file"):
            load_global_config()

    def test_not_an_object(self, isolated_config):
        write_config(isolated_config, [1, 2])
        with pytest.raises(ConfigError, match="JSON object"):
            load_global_config()


class TestResolve:
    def test_defaults(self):
        config = resolve_config(lines=None, size_mb=None, use_cache=False)
        assert config.lines == 50
        assert config.size_mb == 100

    def test_file_over_defaults(self, isolated_config):
        write_config(isolated_config, {"lines": 5, "algorithm": "sha1"})
        config = resolve_config(lines=None, algorithm=None)
        assert config.lines == 5
        assert config.algorithm == "sha1"

    def test_cli_over_file(self, isolated_config):
        write_config(isolated_config, {"lines": 5, "size_mb": 7})
        config = resolve_config(lines=20, size_mb=None)
        assert config.lines == 20
        assert config.size_mb == 7

    def test_invalid_value_from_file(self, isolated_config):
        write_config(isolated_config, {"lines": -3})
        with pytest.raises(ValidationError):
            resolve_config()
