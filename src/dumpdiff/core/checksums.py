"""ChecksumStore: per-directory file digests, persisted as a CSV cache."""

from __future__ import annotations

import csv
import hashlib
import logging
import os
import string
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Mapping, Optional

from dumpdiff.core.errors import (
    CacheCorrupt,
    DirectoryUnreadable,
    FileUnreadable,
    OutputWriteFailure,
)
from dumpdiff.core.schema import DEFAULT_ALGORITHM

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024

# File names are OS strings; surrogateescape lets undecodable bytes round-trip.
CSV_ENCODING = "utf-8"
CSV_ERRORS = "surrogateescape"

ProgressCallback = Callable[[str], None]

_HEX = frozenset(string.hexdigits)


@dataclass(frozen=True)
class ChecksumStore:
    """Immutable name -> digest mapping for one directory snapshot."""

    directory: Path
    cache_path: Path
    checksums: Mapping[str, str] = field(default_factory=dict)
    from_cache: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "checksums", MappingProxyType(dict(self.checksums)))

    def __len__(self) -> int:
        return len(self.checksums)

    def __contains__(self, name: object) -> bool:
        return name in self.checksums

    def get(self, name: str, default: str = "") -> str:
        return self.checksums.get(name, default)

    def names(self) -> set[str]:
        return set(self.checksums)


def file_digest(path: Path, algorithm: str = DEFAULT_ALGORITHM) -> str:
    """Stream a file through the hash function and return the hex digest."""
    digest = hashlib.new(algorithm)
    try:
        with open(path, "rb") as fh:
            for chunk in iter(lambda: fh.read(CHUNK_SIZE), b""):
                digest.update(chunk)
    except OSError as e:
        raise FileUnreadable(path, "checksum", e.strerror or str(e)) from e
    return digest.hexdigest()


class CsvRowWriter:
    """CSV writer that also quotes fields holding a bare carriage return.

    The csv module only quotes characters of the line terminator, so with a
    newline terminator a carriage return in a file name would be written
    unquoted and read back as a row break.
    """

    def __init__(self, fh) -> None:
        self._minimal = csv.writer(fh, lineterminator="\n")
        self._quoted = csv.writer(fh, lineterminator="\n", quoting=csv.QUOTE_ALL)

    def writerow(self, row: list[str]) -> None:
        writer = self._quoted if any("\r" in field for field in row) else self._minimal
        writer.writerow(row)


def _is_hex(value: str) -> bool:
    return bool(value) and all(c in _HEX for c in value)


def load_checksum_csv(path: Path) -> dict[str, str]:
    """Read a persisted snapshot verbatim. Raises CacheCorrupt if malformed.

    Rows are ``name,digest`` with no header. The mapping is returned as
    stored: digests are not checked against the files they describe.
    """
    checksums: dict[str, str] = {}
    try:
        with open(path, encoding=CSV_ENCODING, errors=CSV_ERRORS, newline="") as fh:
            for line_no, row in enumerate(csv.reader(fh), 1):
                if len(row) != 2:
                    raise CacheCorrupt(path, "load cache", f"row {line_no} has {len(row)} fields")
                name, digest = row
                if not name:
                    raise CacheCorrupt(path, "load cache", f"row {line_no} has no file name")
                if not _is_hex(digest):
                    raise CacheCorrupt(path, "load cache", f"row {line_no} has invalid digest {digest!r}")
                checksums[name] = digest
    except csv.Error as e:
        raise CacheCorrupt(path, "load cache", str(e)) from e
    return checksums


class ChecksumWriter:
    """Append-only CSV writer that flushes after every record.

    A run interrupted between two records leaves a file whose rows are all
    complete, so it can be loaded as a partial cache.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._fh = None
        self._writer = None

    def __enter__(self) -> ChecksumWriter:
        try:
            self._fh = open(self.path, "a", encoding=CSV_ENCODING, errors=CSV_ERRORS, newline="")
        except OSError as e:
            raise OutputWriteFailure(self.path, "open checksum file", e.strerror or str(e)) from e
        self._writer = CsvRowWriter(self._fh)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None

    def write(self, name: str, digest: str) -> None:
        if self._fh is None:
            raise RuntimeError("ChecksumWriter used outside of a with block")
        try:
            self._writer.writerow([name, digest])
            self._fh.flush()
        except OSError as e:
            raise OutputWriteFailure(self.path, "write checksum", e.strerror or str(e)) from e


def discard_cache(path: Path) -> None:
    """Remove a persisted snapshot. A missing file is not an error."""
    try:
        path.unlink()
    except FileNotFoundError:
        return
    except OSError as e:
        raise OutputWriteFailure(path, "remove checksum file", e.strerror or str(e)) from e


def list_top_level_files(directory: Path) -> list[str]:
    """Return names of non-directory entries directly under directory, byte-sorted."""
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: os.fsencode(e.name))
    except OSError as e:
        raise DirectoryUnreadable(directory, "list directory", e.strerror or str(e)) from e
    names = []
    for entry in entries:
        try:
            if entry.is_dir():
                continue
        except OSError as e:
            raise FileUnreadable(entry.path, "stat", e.strerror or str(e)) from e
        names.append(entry.name)
    return names


def _try_cache(cache_path: Path) -> Optional[dict[str, str]]:
    if not cache_path.is_file():
        return None
    try:
        return load_checksum_csv(cache_path)
    except CacheCorrupt as e:
        logger.warning("Discarding checksum cache: %s", e)
        return None
    except OSError as e:
        logger.warning("Checksum cache %s unreadable, regenerating: %s", cache_path, e)
        return None


def build_checksums(
    directory: Path,
    use_cache: bool,
    cache_path: Path,
    *,
    algorithm: str = DEFAULT_ALGORITHM,
    on_progress: ProgressCallback | None = None,
) -> ChecksumStore:
    """Compute (or load from cache) the checksum store for one directory."""
    directory = Path(directory)
    cache_path = Path(cache_path)
    report = on_progress or (lambda msg: None)

    if use_cache:
        cached = _try_cache(cache_path)
        if cached is not None:
            logger.debug("Loaded %d checksums for %s from %s", len(cached), directory, cache_path)
            report(f"# Checksums for {directory} loaded from cache ({cache_path})")
            return ChecksumStore(directory, cache_path, cached, from_cache=True)

    discard_cache(cache_path)

    names = list_top_level_files(directory)
    checksums: dict[str, str] = {}
    with ChecksumWriter(cache_path) as writer:
        for name in names:
            file_path = directory / name
            digest = file_digest(file_path, algorithm)
            checksums[name] = digest
            writer.write(name, digest)
            report(f" - {file_path}: {digest}")

    report(f"# Checksums for {directory} generated ({cache_path})")
    return ChecksumStore(directory, cache_path, checksums)
