# gstdots/dots/store.py
from __future__ import annotations
import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from gstdots.core.errors import OutsideRootError, SnapshotIoError, SnapshotNotFoundError
from gstdots.core.time import mtimeMs as statMtimeMs

logger = logging.getLogger(__name__)

__all__ = ["DOT_SUFFIX", "DotEntry", "Snapshot", "SnapshotStore", "isDotPath"]

DOT_SUFFIX = ".dot"



def isDotPath(path: str | os.PathLike[str]) -> bool:
    return os.fspath(path).endswith(DOT_SUFFIX)



@dataclass(frozen=True)
class DotEntry:
    """One `.dot` file found by `SnapshotStore.list()`."""
    name: str       # relative to the root, forward slashes
    mtimeNs: int

    @property
    def mtimeMs(self) -> int:
        return max(0, self.mtimeNs // 1_000_000)



@dataclass(frozen=True)
class Snapshot:
    """Content of one `.dot` file at the moment it was read."""
    name: str
    content: bytes
    mtimeMs: int

    @property
    def isEmpty(self) -> bool:
        return not self.content



class SnapshotStore:
    """
    Read-only view over the dot directory.

    Everything here is blocking filesystem I/O. Callers on the event loop
    go through asyncio.to_thread().
    """
    def __init__(self, root: str | os.PathLike[str]) -> None:
        self.root = Path(root).absolute()

    def __repr__(self) -> str:
        return f"SnapshotStore(root={str(self.root)!r})"

    # ----- Naming -----

    def relative(self, path: str | os.PathLike[str]) -> str:
        """
        Client-facing name for `path`: relative to the root, with `/` separators.
        Relative input is taken as already relative to the root.
        """
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.root / candidate
        try:
            rel = candidate.relative_to(self.root)
        except ValueError:
            # Watch backends may report the resolved form of a symlinked root
            try:
                rel = candidate.relative_to(self.root.resolve())
            except ValueError:
                raise OutsideRootError(f"{str(candidate)!r} is not under {str(self.root)!r}", path=str(path)) from None
        parts = rel.parts
        if not parts or ".." in parts:
            raise OutsideRootError(f"{str(candidate)!r} is not under {str(self.root)!r}", path=str(path))
        return PurePosixPath(*parts).as_posix()

    def absolute(self, name: str) -> Path:
        """Inverse of relative(). Rejects names that escape the root."""
        parts = PurePosixPath(name).parts
        if not parts or ".." in parts or PurePosixPath(name).is_absolute():
            raise OutsideRootError(f"{name!r} is not a name under {str(self.root)!r}", path=name)
        return self.root.joinpath(*parts)

    # ----- Enumeration -----

    def list(self) -> list[DotEntry]:
        """
        Every regular `*.dot` file under the root (recursively, following symlinks),
        sorted by modification time ascending, ties broken by name.
        Unreadable entries are skipped with a warning.
        """
        entries: list[DotEntry] = []
        visited: set[tuple[int, int]] = set()

        def _onError(err: OSError) -> None:
            logger.warning("Skipping unreadable directory %r: %s", err.filename, err)

        for dirPath, dirNames, fileNames in os.walk(self.root, onerror=_onError, followlinks=True):
            # Guard against symlink cycles
            try:
                st = os.stat(dirPath)
            except OSError as err:
                logger.warning("Skipping unreadable directory %r: %s", dirPath, err)
                dirNames[:] = []
                continue
            key = (st.st_dev, st.st_ino)
            if key in visited:
                dirNames[:] = []
                continue
            visited.add(key)
            dirNames.sort()

            for fileName in fileNames:
                if not isDotPath(fileName):
                    continue
                fullPath = os.path.join(dirPath, fileName)
                try:
                    fileStat = os.stat(fullPath)
                except OSError as err:
                    logger.warning("Skipping unreadable dot file %r: %s", fullPath, err)
                    continue
                if not stat.S_ISREG(fileStat.st_mode):
                    continue
                entries.append(DotEntry(name=self.relative(fullPath), mtimeNs=fileStat.st_mtime_ns))

        entries.sort(key=lambda entry: (entry.mtimeNs, entry.name))
        return entries

    # ----- Reading -----

    def read(self, name: str) -> Snapshot:
        """
        Read a snapshot by name. `mtimeMs` is taken at the moment of the read.

        Raises SnapshotNotFoundError, SnapshotIoError or OutsideRootError.
        """
        path = self.absolute(name)
        try:
            with open(path, "rb") as fh:
                fileStat = os.fstat(fh.fileno())
                content = fh.read()
        except FileNotFoundError:
            raise SnapshotNotFoundError(f"{name!r} does not exist", path=name) from None
        except IsADirectoryError:
            raise SnapshotIoError(f"{name!r} is a directory", path=name) from None
        except OSError as err:
            raise SnapshotIoError(f"Could not read {name!r}: {err}", path=name) from err
        return Snapshot(name=name, content=content, mtimeMs=statMtimeMs(fileStat))

    def mtimeMs(self, name: str) -> int:
        """Modification time in ms, or 0 if the file is gone or unreadable."""
        try:
            return statMtimeMs(os.stat(self.absolute(name)))
        except (OSError, OutsideRootError):
            return 0

    def size(self, name: str) -> int:
        """Current size in bytes, or -1 if the file does not exist."""
        try:
            return os.stat(self.absolute(name)).st_size
        except (OSError, OutsideRootError):
            return -1

    def exists(self, name: str) -> bool:
        try:
            return self.absolute(name).is_file()
        except OutsideRootError:
            return False
