"""Resolve reconciled records into diff artifacts."""

from __future__ import annotations

import difflib
import logging
import os
import shutil
import stat
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Protocol, runtime_checkable

from dumpdiff.core.errors import (
    ExternalToolFailure,
    FileUnreadable,
    InconsistentRecord,
    OutputWriteFailure,
)
from dumpdiff.core.reconcile import ReconciliationRecord
from dumpdiff.core.schema import CompareConfig, DiffOutcome
from dumpdiff.utils.paths import DIFF_SUFFIX, human_readable_size

logger = logging.getLogger(__name__)

CONTEXT_LINES = 3
BLOCK_SIZE = 64 * 1024
NO_NEWLINE_MARKER = b"\\ No newline at end of file\n"


# -- Collaborators --


@runtime_checkable
class LastLinesReader(Protocol):
    """Returns the trailing lines of a file."""

    def read_last_lines(self, path: Path, count: int) -> bytes:
        """Return the last ``count`` newline-delimited lines of ``path``."""
        ...


@runtime_checkable
class UnifiedDiffer(Protocol):
    """Produces unified-format diff text for two byte blocks."""

    def unified_diff(
        self,
        a: bytes,
        b: bytes,
        from_label: str,
        to_label: str,
        context: int = CONTEXT_LINES,
    ) -> bytes:
        """Return the diff, or ``b""`` when the blocks are identical."""
        ...


class TailReader:
    """In-process ``tail -n``: scans backwards from the end in fixed blocks."""

    def __init__(self, block_size: int = BLOCK_SIZE) -> None:
        self.block_size = block_size

    def read_last_lines(self, path: Path, count: int) -> bytes:
        if count <= 0:
            return b""
        try:
            with open(path, "rb") as fh:
                end = fh.seek(0, os.SEEK_END)
                if end == 0:
                    return b""
                fh.seek(end - 1)
                # A trailing newline terminates the last line, it does not start a new one
                pos = end - 1 if fh.read(1) == b"\n" else end
                start = self._find_start(fh, pos, count)
                fh.seek(start)
                return fh.read(end - start)
        except OSError as e:
            raise FileUnreadable(path, "read last lines", e.strerror or str(e)) from e

    def _find_start(self, fh, pos: int, count: int) -> int:
        remaining = count
        while pos > 0:
            block_start = max(0, pos - self.block_size)
            fh.seek(block_start)
            chunk = fh.read(pos - block_start)
            idx = len(chunk)
            while remaining:
                idx = chunk.rfind(b"\n", 0, idx)
                if idx < 0:
                    break
                remaining -= 1
            if not remaining:
                return block_start + idx + 1
            pos = block_start
        return 0


class ExternalTailReader:
    """Shells out to ``tail -n N``."""

    def __init__(self, executable: str = "tail") -> None:
        self.executable = executable

    def read_last_lines(self, path: Path, count: int) -> bytes:
        cmd = [self.executable, "-n", str(max(count, 0)), str(path)]
        try:
            result = subprocess.run(cmd, capture_output=True, check=True)
        except FileNotFoundError as e:
            raise ExternalToolFailure(path, "tail", f"{self.executable} not found") from e
        except subprocess.CalledProcessError as e:
            detail = e.stderr.decode(errors="replace").strip() or f"exit status {e.returncode}"
            raise ExternalToolFailure(path, "tail", detail) from e
        return result.stdout


def split_lines(data: bytes) -> list[bytes]:
    """Split on the newline byte only, keeping line endings."""
    if not data:
        return []
    lines = [line + b"\n" for line in data.split(b"\n")]
    if data.endswith(b"\n"):
        lines.pop()
    else:
        lines[-1] = lines[-1][:-1]
    return lines


class DifflibDiffer:
    """Unified diff built on ``difflib.diff_bytes``, formatted like ``diff -u``."""

    def unified_diff(
        self,
        a: bytes,
        b: bytes,
        from_label: str,
        to_label: str,
        context: int = CONTEXT_LINES,
    ) -> bytes:
        if a == b:
            return b""
        out = []
        for line in difflib.diff_bytes(
            difflib.unified_diff,
            split_lines(a),
            split_lines(b),
            fromfile=os.fsencode(from_label),
            tofile=os.fsencode(to_label),
            n=context,
        ):
            if line.endswith(b"\n"):
                out.append(line)
            else:
                out.append(line + b"\n" + NO_NEWLINE_MARKER)
        return b"".join(out)


class ExternalDiffer:
    """Shells out to ``diff -u`` through two temporary files."""

    def __init__(self, executable: str = "diff") -> None:
        self.executable = executable

    def unified_diff(
        self,
        a: bytes,
        b: bytes,
        from_label: str,
        to_label: str,
        context: int = CONTEXT_LINES,
    ) -> bytes:
        with tempfile.TemporaryDirectory(prefix="dumpdiff-") as tmp:
            file_a = Path(tmp) / "a"
            file_b = Path(tmp) / "b"
            file_a.write_bytes(a)
            file_b.write_bytes(b)
            cmd = [
                self.executable,
                f"-U{context}",
                "--label",
                from_label,
                "--label",
                to_label,
                str(file_a),
                str(file_b),
            ]
            try:
                result = subprocess.run(cmd, capture_output=True)
            except FileNotFoundError as e:
                raise ExternalToolFailure(Path(to_label), "diff", f"{self.executable} not found") from e
        # diff exits 1 when the inputs differ
        if result.returncode > 1 and not result.stdout:
            detail = result.stderr.decode(errors="replace").strip() or f"exit status {result.returncode}"
            raise ExternalToolFailure(Path(to_label), "diff", detail)
        return result.stdout


# -- Engine --


@dataclass
class Resolution:
    record: ReconciliationRecord
    outcome: DiffOutcome
    artifact: Path
    strategy: str  # "copy", "full" or "tail"


def _stat(path: Path) -> Optional[os.stat_result]:
    """Stat a regular file; directories count as absent, as when listing."""
    try:
        st = path.stat()
    except FileNotFoundError:
        return None
    except OSError as e:
        raise FileUnreadable(path, "stat", e.strerror or str(e)) from e
    return None if stat.S_ISDIR(st.st_mode) else st


def _read_all(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise FileUnreadable(path, "read", e.strerror or str(e)) from e


class DiffEngine:
    """Turns each reconciliation record into exactly one artifact."""

    def __init__(
        self,
        config: CompareConfig,
        tail_reader: LastLinesReader | None = None,
        differ: UnifiedDiffer | None = None,
        on_progress: Callable[[str], None] | None = None,
    ) -> None:
        self.config = config
        if tail_reader is None:
            tail_reader = ExternalTailReader() if config.external_tools else TailReader()
        if differ is None:
            differ = ExternalDiffer() if config.external_tools else DifflibDiffer()
        self.tail_reader = tail_reader
        self.differ = differ
        self._on_progress = on_progress
        self._report = on_progress or (lambda msg: None)
        # artifact path -> record name that produced it during this run
        self._artifacts: dict[Path, str] = {}

    def _debug(self, msg: str) -> None:
        if self.config.debug and self._on_progress is not None:
            self._report(f"// {msg}")
        else:
            logger.debug(msg)

    def _claim(self, artifact: Path, name: str) -> None:
        owner = self._artifacts.get(artifact)
        if owner is not None and owner != name:
            logger.warning("Artifact %s for %s overwrites the one written for %s", artifact, name, owner)
        self._artifacts[artifact] = name

    def resolve(
        self, record: ReconciliationRecord, dir_a: Path, dir_b: Path, diffs_dir: Path
    ) -> Resolution:
        file_a = Path(dir_a) / record.name
        file_b = Path(dir_b) / record.name
        stat_a = _stat(file_a)
        stat_b = _stat(file_b)

        if stat_a is None and stat_b is None:
            raise InconsistentRecord(file_a, "resolve", f"{record.name} exists in neither directory")
        if stat_a is None:
            artifact = self._copy(file_b, Path(diffs_dir) / record.name, record.name)
            return Resolution(record, DiffOutcome.copied_from_b, artifact, "copy")
        if stat_b is None:
            artifact = self._copy(file_a, Path(diffs_dir) / record.name, record.name)
            return Resolution(record, DiffOutcome.copied_from_a, artifact, "copy")

        return self._diff(record, file_a, stat_a.st_size, file_b, stat_b.st_size, Path(diffs_dir))

    def _copy(self, src: Path, dst: Path, name: str) -> Path:
        self._claim(dst, name)
        try:
            shutil.copyfile(src, dst)
        except OSError as e:
            if e.filename is not None and Path(e.filename) == dst:
                raise OutputWriteFailure(dst, "copy", e.strerror or str(e)) from e
            raise FileUnreadable(src, "copy", e.strerror or str(e)) from e
        self._report(f"# File copied from {src} to {dst}")
        return dst

    def _diff(
        self,
        record: ReconciliationRecord,
        file_a: Path,
        size_a: int,
        file_b: Path,
        size_b: int,
        diffs_dir: Path,
    ) -> Resolution:
        threshold = self.config.size_threshold
        self._debug(f"Size limit: {threshold}")
        self._debug(f"File Size 1: {size_a}")
        self._debug(f"File Size 2: {size_b}")

        if size_a > threshold or size_b > threshold:
            strategy = "tail"
            self._debug(
                f"large files detected: {file_a} - {file_b}, comparing last {self.config.lines} lines"
            )
            content_a = self.tail_reader.read_last_lines(file_a, self.config.lines)
            content_b = self.tail_reader.read_last_lines(file_b, self.config.lines)
        else:
            strategy = "full"
            self._debug(f"comparing entire files {file_a} - {file_b}")
            content_a = _read_all(file_a)
            content_b = _read_all(file_b)

        text = self.differ.unified_diff(content_a, content_b, str(file_a), str(file_b))
        outcome = DiffOutcome.unified_diff if text else DiffOutcome.no_diff_content

        diff_file = diffs_dir / f"{record.name}{DIFF_SUFFIX}"
        self._claim(diff_file, record.name)
        try:
            diff_file.write_bytes(text)
        except OSError as e:
            raise OutputWriteFailure(diff_file, "write diff", e.strerror or str(e)) from e

        self._report(
            f" - diff generated for {file_a} ({human_readable_size(size_a)})"
            f" and {file_b} ({human_readable_size(size_b)})"
        )
        return Resolution(record, outcome, diff_file, strategy)
