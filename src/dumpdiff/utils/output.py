"""Output utilities: rich consoles, JSON output, logging setup."""

from __future__ import annotations

import json
import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

console = Console()
error_console = Console(stderr=True)


def output_json(data: Any) -> None:
    """Print data as JSON on plain stdout so it stays machine-readable."""
    if hasattr(data, "model_dump_json"):
        print(data.model_dump_json(indent=2))
    else:
        print(json.dumps(data, indent=2, default=str))


def progress(msg: str) -> None:
    """Print a progress line verbatim (file names may contain markup characters)."""
    console.print(msg, markup=False, highlight=False, soft_wrap=True)


def error(msg: str) -> None:
    error_console.print(f"[red]Error:[/red] {escape(msg)}", soft_wrap=True)


def setup_logging(debug: bool = False) -> None:
    """Route package logging to stderr through rich."""
    logger = logging.getLogger("dumpdiff")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = RichHandler(console=error_console, show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)
