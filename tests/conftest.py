import os
import sys
from pathlib import Path

import pytest

from gstdots.dots.store import SnapshotStore



def pytest_configure(config: pytest.Config) -> None:
    if sys.flags.optimize:
        raise RuntimeError("Assertions are disabled (optimize > 0)")



def writeDot(root: Path, name: str, content: str | bytes = "digraph G { a -> b }", *, mtimeNs: int | None = None) -> Path:
    """Write `root/name` (creating parents) and optionally pin its modification time."""
    path = root.joinpath(*name.split("/"))
    path.parent.mkdir(parents=True, exist_ok=True)
    data = content.encode("utf-8") if isinstance(content, str) else content
    path.write_bytes(data)
    if mtimeNs is not None:
        os.utime(path, ns=(mtimeNs, mtimeNs))
    return path



@pytest.fixture
def dotDir(tmp_path: Path) -> Path:
    path = tmp_path / "dots"
    path.mkdir()
    return path



@pytest.fixture
def store(dotDir: Path) -> SnapshotStore:
    return SnapshotStore(dotDir)



@pytest.fixture
def writeDotFile(dotDir: Path):
    def _write(name: str, content: str | bytes = "digraph G { a -> b }", *, mtimeNs: int | None = None) -> Path:
        return writeDot(dotDir, name, content, mtimeNs=mtimeNs)
    return _write
