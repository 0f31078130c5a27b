"""Shared CLI utilities: common options and config resolution."""

from __future__ import annotations

from typing import Any

import typer

from dumpdiff.core.schema import CompareConfig
from dumpdiff.utils.config import load_global_config

OUTPUT_FORMATS = ("json", "text")

FORMAT_OPTION = typer.Option(None, "--format", "-F", help="Output format: json or text")


def resolve_config(**overrides: Any) -> CompareConfig:
    """Merge CLI values over the global config file over built-in defaults.

    Options left at ``None`` on the command line fall through to the
    config file.
    """
    values = load_global_config()
    values.update({k: v for k, v in overrides.items() if v is not None})
    return CompareConfig(**values)
