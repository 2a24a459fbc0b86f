# gstdots/dots/cleanup.py
from __future__ import annotations
import logging
from pathlib import Path, PurePosixPath

from gstdots.dots.store import SnapshotStore

logger = logging.getLogger(__name__)

__all__ = ["cleanupGenerated"]



def cleanupGenerated(store: SnapshotStore, dirs: dict[str, Path]) -> list[Path]:
    """
    Remove rendered files whose source dot no longer exists.

    `dirs` maps an extension ("svg", "html") to the directory holding files of
    that kind. A file is kept when some `<stem>.dot` exists anywhere under the
    dot directory. Failures are logged and skipped. Returns the removed paths.
    """
    liveStems = {PurePosixPath(entry.name).stem for entry in store.list()}
    removed: list[Path] = []

    for ext, directory in dirs.items():
        if not directory.is_dir():
            continue
        for path in sorted(directory.iterdir()):
            if not path.is_file() or path.suffix != f".{ext}":
                continue
            if path.stem in liveStems:
                logger.debug("Keeping %s: %s", ext, path)
                continue
            try:
                path.unlink()
            except OSError as err:
                logger.error("Failed to remove %s %s: %s", ext, path, err)
                continue
            logger.info("Removed %s: %s, %s.dot does not exist", ext, path, path.stem)
            removed.append(path)
    return removed
