"""Tests for the pydantic run models."""

import pytest
from pydantic import ValidationError

from dumpdiff.core.schema import CompareConfig, CompareSummary, DiffOutcome


class TestCompareConfig:
    def test_defaults(self):
        config = CompareConfig()
        assert config.lines == 50
        assert config.size_mb == 100
        assert config.size_threshold == 100 * 1024 * 1024
        assert config.algorithm == "md5"
        assert not config.use_cache and not config.debug and not config.external_tools

    def test_frozen(self):
        config = CompareConfig()
        with pytest.raises(ValidationError):
            config.lines = 10

    @pytest.mark.parametrize("field", ["lines", "size_mb"])
    def test_negative_rejected(self, field):
        with pytest.raises(ValidationError):
            CompareConfig(**{field: -1})

    def test_algorithm_normalised(self):
        assert CompareConfig(algorithm="SHA256").algorithm == "sha256"

    @pytest.mark.parametrize("name", ["nope", "shake_128"])
    def test_bad_algorithm(self, name):
        with pytest.raises(ValidationError):
            CompareConfig(algorithm=name)


class TestCompareSummary:
    def test_json_uses_outcome_values(self):
        summary = CompareSummary(
            dir_a="a",
            dir_b="b",
            output_dir="a-b",
            checksums_a="a-b/a-checksums.csv",
            checksums_b="a-b/b-checksums.csv",
            report="a-b/diff.csv",
            diffs_dir="a-b/diffs",
            differences=1,
            outcomes={DiffOutcome.copied_from_a: 1},
        )
        assert '"copied_from_a": 1' in summary.model_dump_json()
