"""Error kinds raised by the compare pipeline."""

from __future__ import annotations

from pathlib import Path


class CompareError(Exception):
    """Base error: carries the failing path and the operation attempted."""

    def __init__(self, path: Path | str, operation: str, detail: str = "") -> None:
        self.path = Path(path)
        self.operation = operation
        self.detail = detail
        message = f"{operation} failed for {self.path}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class DirectoryUnreadable(CompareError):
    pass


class FileUnreadable(CompareError):
    pass


class CacheCorrupt(CompareError):
    """Persisted checksum snapshot is malformed. Recovered by regenerating."""


class OutputWriteFailure(CompareError):
    pass


class ExternalToolFailure(CompareError):
    pass


class InconsistentRecord(CompareError):
    """A reconciled file name exists on neither side."""
