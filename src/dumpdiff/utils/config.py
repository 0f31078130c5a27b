"""Global configuration: defaults read from ~/.config/dumpdiff/config.json."""

from __future__ import annotations

import json
import os
from pathlib import Path

CONFIG_DIR_ENV = "DUMPDIFF_CONFIG_DIR"
CONFIG_KEYS = ("lines", "size_mb", "algorithm", "external_tools")


class ConfigError(Exception):
    pass


def global_config_dir() -> Path:
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override)
    return Path.home() / ".config" / "dumpdiff"


def load_global_config() -> dict:
    """Return the known keys of the global config file (empty when absent)."""
    path = global_config_dir() / "config.json"
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")
    return {k: v for k, v in data.items() if k in CONFIG_KEYS}

