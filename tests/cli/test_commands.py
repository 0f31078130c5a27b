"""Integration tests for the CLI via typer.testing.CliRunner."""

import json

from typer.testing import CliRunner

from dumpdiff import __version__
from dumpdiff.cli.main import app
from tests.conftest import write_tree

runner = CliRunner()


class TestCompare:
    def test_success_summary(self, dumps, tmp_path):
        dir_a, dir_b = dumps
        out = tmp_path / "out"
        result = runner.invoke(app, [str(dir_a), str(dir_b), "--output-dir", str(out)])
        assert result.exit_code == 0, result.output
        assert f"# Compare {dir_a} and {dir_b}" in result.output
        assert f"# Total differences found: 2 ({out / 'diffs'})" in result.output
        assert (out / "diffs" / "a.txt.diff").is_file()
        assert (out / "diffs" / "b.txt").is_file()

    def test_json_format(self, dumps, tmp_path):
        dir_a, dir_b = dumps
        result = runner.invoke(
            app, [str(dir_a), str(dir_b), "-o", str(tmp_path / "out"), "--format", "json"]
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["differences"] == 2
        assert data["outcomes"] == {"unified_diff": 1, "copied_from_b": 1}

    def test_use_cache(self, dumps, tmp_path):
        dir_a, dir_b = dumps
        out = str(tmp_path / "out")
        runner.invoke(app, [str(dir_a), str(dir_b), "-o", out])
        result = runner.invoke(app, [str(dir_a), str(dir_b), "-o", out, "--use-cache", "-F", "json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["cached_a"] is True
        assert data["cached_b"] is True

    def test_debug_and_tail_options(self, tmp_path):
        tail = "".join(f"{i}\n" for i in range(10))
        left = write_tree(tmp_path / "l", {"big": "A\n" + tail})
        right = write_tree(tmp_path / "r", {"big": "B\n" + tail})
        result = runner.invoke(
            app,
            [str(left), str(right), "-o", str(tmp_path / "out"), "--size-mb", "0", "--lines", "10", "--debug"],
        )
        assert result.exit_code == 0, result.output
        assert "// Size limit: 0" in result.output
        assert "comparing last 10 lines" in result.output
        assert (tmp_path / "out" / "diffs" / "big.diff").read_bytes() == b""

    def test_algorithm_option(self, dumps, tmp_path):
        dir_a, dir_b = dumps
        out = tmp_path / "out"
        result = runner.invoke(app, [str(dir_a), str(dir_b), "-o", str(out), "--algorithm", "sha256"])
        assert result.exit_code == 0, result.output
        digest = (out / "dump1-checksums.csv").read_text().strip().split(",")[1]
        assert len(digest) == 64


class TestFailures:
    def test_missing_directory(self, tmp_path):
        write_tree(tmp_path / "a", {})
        result = runner.invoke(app, [str(tmp_path / "a"), str(tmp_path / "nope"), "-o", str(tmp_path / "out")])
        assert result.exit_code == 1
        assert "Total differences" not in result.output

    def test_bad_algorithm(self, dumps):
        dir_a, dir_b = dumps
        result = runner.invoke(app, [str(dir_a), str(dir_b), "--algorithm", "nope"])
        assert result.exit_code == 1

    def test_unknown_format_rejected(self, dumps, tmp_path):
        dir_a, dir_b = dumps
        out = tmp_path / "out"
        result = runner.invoke(app, [str(dir_a), str(dir_b), "-o", str(out), "--format", "xml"])
        assert result.exit_code == 1
        assert "Unknown format 'xml'" in result.output
        assert not out.exists()

    def test_negative_lines_rejected(self, dumps):
        dir_a, dir_b = dumps
        result = runner.invoke(app, [str(dir_a), str(dir_b), "--lines", "-1"])
        assert result.exit_code != 0

    def test_missing_arguments(self):
        result = runner.invoke(app, [])
        assert result.exit_code != 0

    def test_broken_config_file(self, dumps, isolated_config):
        dir_a, dir_b = dumps
        isolated_config.mkdir(parents=True)
        (isolated_config / "config.json").write_text("{broken")
        result = runner.invoke(app, [str(dir_a), str(dir_b)])
        assert result.exit_code == 1


class TestVersion:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output
