"""Shared fixtures: temp dump directories with known contents."""

from __future__ import annotations

from pathlib import Path

import pytest

from dumpdiff.core.schema import CompareConfig


def write_tree(root: Path, files: dict[str, bytes | str]) -> Path:
    """Create root and write each file under it."""
    root.mkdir(parents=True, exist_ok=True)
    for name, content in files.items():
        data = content.encode() if isinstance(content, str) else content
        (root / name).write_bytes(data)
    return root


@pytest.fixture
def config() -> CompareConfig:
    return CompareConfig()


@pytest.fixture
def dumps(tmp_path: Path) -> tuple[Path, Path]:
    """Two dumps: a.txt differs by one byte, b.txt only exists in B."""
    dir_a = write_tree(tmp_path / "dump1", {"a.txt": "hello"})
    dir_b = write_tree(tmp_path / "dump2", {"a.txt": "hellp", "b.txt": "only in b\n"})
    return dir_a, dir_b


@pytest.fixture
def identical_dumps(tmp_path: Path) -> tuple[Path, Path]:
    files = {"one.csv": "id,name\n1,x\n", "two.bin": b"\x00\x01\x02", "empty": b""}
    return write_tree(tmp_path / "left", files), write_tree(tmp_path / "right", files)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path: Path) -> Path:
    """Point the global config directory at an empty temp location."""
    config_dir = tmp_path / "config"
    monkeypatch.setenv("DUMPDIFF_CONFIG_DIR", str(config_dir))
    return config_dir
