"""Pydantic v2 models for run configuration and results."""

from __future__ import annotations

import hashlib
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_LINES = 50
DEFAULT_SIZE_MB = 100
DEFAULT_ALGORITHM = "md5"

MEGABYTE = 1024 * 1024


class DiffOutcome(str, Enum):
    copied_from_a = "copied_from_a"
    copied_from_b = "copied_from_b"
    unified_diff = "unified_diff"
    no_diff_content = "no_diff_content"


class CompareConfig(BaseModel):
    """Settings threaded through every stage of a compare run."""

    model_config = ConfigDict(frozen=True)

    lines: int = Field(DEFAULT_LINES, ge=0)
    size_mb: int = Field(DEFAULT_SIZE_MB, ge=0)
    use_cache: bool = False
    debug: bool = False
    algorithm: str = DEFAULT_ALGORITHM
    external_tools: bool = False

    @field_validator("algorithm")
    @classmethod
    def _known_algorithm(cls, value: str) -> str:
        name = value.lower()
        if name not in hashlib.algorithms_available:
            raise ValueError(f"unsupported hash algorithm: {value}")
        # shake_* digests have no fixed length
        if hashlib.new(name).digest_size == 0:
            raise ValueError(f"hash algorithm has no fixed digest size: {value}")
        return name

    @property
    def size_threshold(self) -> int:
        """Size in bytes above which only the tail window is compared."""
        return self.size_mb * MEGABYTE


class CompareSummary(BaseModel):
    dir_a: str
    dir_b: str
    output_dir: str
    checksums_a: str
    checksums_b: str
    report: str
    diffs_dir: str
    files_a: int = 0
    files_b: int = 0
    cached_a: bool = False
    cached_b: bool = False
    differences: int = 0
    outcomes: dict[DiffOutcome, int] = Field(default_factory=dict)
