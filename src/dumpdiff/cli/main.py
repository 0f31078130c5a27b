"""Typer app: the dumpdiff compare command."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from dumpdiff import __version__
from dumpdiff.cli._shared import FORMAT_OPTION, OUTPUT_FORMATS, resolve_config
from dumpdiff.core.compare import run_compare
from dumpdiff.core.errors import CompareError
from dumpdiff.core.schema import DEFAULT_LINES, DEFAULT_SIZE_MB
from dumpdiff.utils.config import ConfigError
from dumpdiff.utils.output import error, output_json, progress, setup_logging

app = typer.Typer(
    name="dumpdiff",
    help="Compare two directory dumps by checksum and write diffs for the files that differ.",
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "Invalid configuration: " + "; ".join(parts)


@app.command()
def compare(
    dir_a: Path = typer.Argument(..., help="First directory (side A)"),
    dir_b: Path = typer.Argument(..., help="Second directory (side B)"),
    lines: Optional[int] = typer.Option(
        None, "--lines", min=0, help=f"Number of lines to compare for large files [default: {DEFAULT_LINES}]"
    ),
    size_mb: Optional[int] = typer.Option(
        None,
        "--size-mb",
        "--size",
        min=0,
        help=f"File size limit in MB above which only the last lines are compared [default: {DEFAULT_SIZE_MB}]",
    ),
    use_cache: bool = typer.Option(
        False, "--use-cache", help="Use existing checksum CSV files instead of regenerating them"
    ),
    debug: bool = typer.Option(False, "--debug", help="Print size and strategy details for each diff"),
    algorithm: Optional[str] = typer.Option(None, "--algorithm", help="Digest algorithm [default: md5]"),
    external_tools: bool = typer.Option(
        False, "--external-tools", help="Use the system tail and diff programs instead of the built-in ones"
    ),
    output_dir: Optional[Path] = typer.Option(
        None, "--output-dir", "-o", help="Output directory [default: <dirA>-<dirB>]"
    ),
    fmt: Optional[str] = FORMAT_OPTION,
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit"
    ),
) -> None:
    """Compare the top-level files of DIR_A and DIR_B."""
    setup_logging(debug)
    if fmt is not None and fmt not in OUTPUT_FORMATS:
        error(f"Unknown format '{fmt}' (expected one of: {', '.join(OUTPUT_FORMATS)})")
        raise typer.Exit(1)

    try:
        config = resolve_config(
            lines=lines,
            size_mb=size_mb,
            use_cache=use_cache,
            debug=debug,
            algorithm=algorithm,
            # an unset flag falls through to the config file
            external_tools=external_tools or None,
        )
    except ConfigError as e:
        error(str(e))
        raise typer.Exit(1)
    except ValidationError as e:
        error(_validation_message(e))
        raise typer.Exit(1)

    try:
        summary = run_compare(
            dir_a,
            dir_b,
            config,
            output_dir=output_dir,
            on_progress=None if fmt == "json" else progress,
        )
    except CompareError as e:
        error(str(e))
        raise typer.Exit(1)

    if fmt == "json":
        output_json(summary)
    else:
        progress(f"# Total differences found: {summary.differences} ({summary.diffs_dir})")
