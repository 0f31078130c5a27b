"""Path utilities for the compare output layout."""

from __future__ import annotations

import os
from pathlib import Path

CHECKSUM_SUFFIX = "-checksums.csv"
DIFFS_DIR = "diffs"
DIFF_SUFFIX = ".diff"


def clean_path(path: Path | str) -> str:
    """Lexically normalise a path the way it was given (no symlink resolution)."""
    return os.path.normpath(os.fspath(path))


def default_output_dir(dir_a: Path | str, dir_b: Path | str) -> Path:
    """Return ``<dirA>-<dirB>`` built from the normalised input paths."""
    return Path(clean_path(f"{clean_path(dir_a)}-{clean_path(dir_b)}"))


def base_name(directory: Path | str) -> str:
    name = os.path.basename(clean_path(directory))
    # "." and "/" have no usable base name
    if name in ("", ".", ".."):
        name = os.path.basename(os.path.abspath(clean_path(directory))) or "root"
    return name


def checksum_csv_paths(output_dir: Path, dir_a: Path | str, dir_b: Path | str) -> tuple[Path, Path]:
    """Checksum cache locations for both sides.

    When both directories share a base name, the B side gets a ``-2``
    suffix so the two caches stay distinct.
    """
    name_a = base_name(dir_a)
    name_b = base_name(dir_b)
    if name_a == name_b:
        name_b = f"{name_b}-2"
    return output_dir / f"{name_a}{CHECKSUM_SUFFIX}", output_dir / f"{name_b}{CHECKSUM_SUFFIX}"


def human_readable_size(size: int) -> str:
    """Format a byte count with binary units: ``512 B``, ``1.5 KB``, ``3.0 GB``."""
    unit = 1024
    if size < unit:
        return f"{size} B"
    div, exp = unit, 0
    n = size // unit
    while n >= unit:
        div *= unit
        exp += 1
        n //= unit
    return f"{size / div:.1f} {'KMGTPE'[exp]}B"
