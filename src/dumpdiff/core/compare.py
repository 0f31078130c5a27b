"""Drive a full compare run: checksums, reconciliation, diff artifacts."""

from __future__ import annotations

import logging
import os
import shutil
from collections import Counter
from pathlib import Path
from typing import Callable

from dumpdiff.core.checksums import build_checksums
from dumpdiff.core.diff import DiffEngine, LastLinesReader, UnifiedDiffer
from dumpdiff.core.errors import DirectoryUnreadable, OutputWriteFailure
from dumpdiff.core.reconcile import REPORT_NAME, read_report, reconcile, write_report
from dumpdiff.core.schema import CompareConfig, CompareSummary
from dumpdiff.utils.paths import DIFFS_DIR, checksum_csv_paths, clean_path, default_output_dir

logger = logging.getLogger(__name__)


def _check_directory(path: Path) -> None:
    if not path.is_dir():
        raise DirectoryUnreadable(path, "open directory", "not a directory")
    if not os.access(path, os.R_OK | os.X_OK):
        raise DirectoryUnreadable(path, "open directory", "permission denied")


def _make_dir(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise OutputWriteFailure(path, "create directory", e.strerror or str(e)) from e


def _reset_diffs_dir(path: Path) -> None:
    """Recreate the artifact directory empty so it mirrors only this run."""
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        elif path.exists() or path.is_symlink():
            path.unlink()
    except OSError as e:
        raise OutputWriteFailure(path, "clear diffs directory", e.strerror or str(e)) from e
    _make_dir(path)


def run_compare(
    dir_a: Path | str,
    dir_b: Path | str,
    config: CompareConfig | None = None,
    *,
    output_dir: Path | str | None = None,
    tail_reader: LastLinesReader | None = None,
    differ: UnifiedDiffer | None = None,
    on_progress: Callable[[str], None] | None = None,
) -> CompareSummary:
    """Compare the top-level files of two directories and write all artifacts."""
    config = config or CompareConfig()
    report = on_progress or (lambda msg: None)

    label_a = clean_path(dir_a)
    label_b = clean_path(dir_b)
    path_a = Path(label_a)
    path_b = Path(label_b)
    _check_directory(path_a)
    _check_directory(path_b)

    out = Path(clean_path(output_dir)) if output_dir is not None else default_output_dir(label_a, label_b)
    _make_dir(out)
    logger.debug("Output directory: %s", out)

    report(f"# Compare {label_a} and {label_b}")

    csv_a, csv_b = checksum_csv_paths(out, label_a, label_b)
    store_a = build_checksums(
        path_a, config.use_cache, csv_a, algorithm=config.algorithm, on_progress=on_progress
    )
    store_b = build_checksums(
        path_b, config.use_cache, csv_b, algorithm=config.algorithm, on_progress=on_progress
    )

    report_path = write_report(reconcile(store_a, store_b), out / REPORT_NAME, label_a, label_b)
    report(f"# Combined CSV generated at {report_path}")

    records = read_report(report_path)
    diffs_dir = out / DIFFS_DIR
    _reset_diffs_dir(diffs_dir)

    engine = DiffEngine(config, tail_reader=tail_reader, differ=differ, on_progress=on_progress)
    outcomes: Counter = Counter()
    report("# Start comparing files")
    for record in records:
        resolution = engine.resolve(record, path_a, path_b, diffs_dir)
        outcomes[resolution.outcome] += 1
        logger.debug("%s -> %s (%s)", record.name, resolution.outcome.value, resolution.strategy)
    report(f"# Files compared and differences stored in {diffs_dir}")

    return CompareSummary(
        dir_a=label_a,
        dir_b=label_b,
        output_dir=str(out),
        checksums_a=str(csv_a),
        checksums_b=str(csv_b),
        report=str(report_path),
        diffs_dir=str(diffs_dir),
        files_a=len(store_a),
        files_b=len(store_b),
        cached_a=store_a.from_cache,
        cached_b=store_b.from_cache,
        differences=len(records),
        outcomes=dict(outcomes),
    )
