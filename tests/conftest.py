from __future__ import annotations

import os
from pathlib import Path

import pytest


BASE_NS = 1_700_000_000_000_000_000


def write_file(root: Path, relative: str, content: str = "data", *, mtime_ns: int = BASE_NS) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    os.utime(path, ns=(mtime_ns, mtime_ns))
    return path


def rel(path: str) -> str:
    """Host-separator form of a POSIX-style relative path."""
    return os.path.join(*path.split("/"))


@pytest.fixture
def source_tree(tmp_path: Path) -> Path:
    root = tmp_path / "source"
    write_file(root, "docs/readme.txt", "hello")
    write_file(root, "img/logo.png", "png-bytes", mtime_ns=BASE_NS + 5)
    return root
