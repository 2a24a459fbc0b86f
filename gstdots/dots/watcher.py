# gstdots/dots/watcher.py
from __future__ import annotations
import asyncio
import logging
import os
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from watchdog.events import (
    EVENT_TYPE_CLOSED,
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from gstdots.core.errors import OutsideRootError, WatcherSetupError
from gstdots.dots.events import Appeared, CoreEvent, Vanished
from gstdots.dots.store import SnapshotStore, isDotPath

logger = logging.getLogger(__name__)

__all__ = ["DotWatcher", "DotEventHandler", "classifyEvent", "MAX_COALESCE_MS"]

MAX_COALESCE_MS = 100

# Raw kinds handed from the observer thread to the event loop
_CONTENT = "content"
_CREATED = "created"
_REMOVED = "removed"
_DIR_REMOVED = "dir-removed"



class DotEventHandler(FileSystemEventHandler):
    """
    Runs on the watchdog observer thread. Filters and classifies events, then hands
    them to the watcher on its event loop. Nothing here blocks.
    """
    def __init__(self, watcher: DotWatcher, loop: asyncio.AbstractEventLoop) -> None:
        super().__init__()
        self._watcher = watcher
        self._loop = loop

    def on_any_event(self, event: FileSystemEvent) -> None:
        try:
            for kind, path in classifyEvent(event):
                self._loop.call_soon_threadsafe(self._watcher._onRaw, kind, path)
        except RuntimeError:
            # Loop closed under us during shutdown
            logger.debug("Dropping %s event, event loop is closed", event.event_type)
        except Exception:
            logger.exception("Failed to handle filesystem event %r", event)



def classifyEvent(event: FileSystemEvent) -> list[tuple[str, str]]:
    """
    Map one watchdog event to zero or more raw (kind, absolute path) pairs.
    A rename becomes a removal of the source followed by content at the destination.
    A directory deleted or moved away becomes one directory removal.
    """
    if event.is_directory:
        # Files inside a directory that leaves the tree get no events of their own
        if event.event_type in (EVENT_TYPE_DELETED, EVENT_TYPE_MOVED):
            return [(_DIR_REMOVED, os.fsdecode(event.src_path))]
        return []

    srcPath = os.fsdecode(event.src_path)
    eventType = event.event_type

    if eventType in (EVENT_TYPE_MODIFIED, EVENT_TYPE_CLOSED):
        return [(_CONTENT, srcPath)] if isDotPath(srcPath) else []
    if eventType == EVENT_TYPE_CREATED:
        return [(_CREATED, srcPath)] if isDotPath(srcPath) else []
    if eventType == EVENT_TYPE_DELETED:
        return [(_REMOVED, srcPath)] if isDotPath(srcPath) else []
    if eventType == EVENT_TYPE_MOVED:
        out: list[tuple[str, str]] = []
        destPath = os.fsdecode(getattr(event, "dest_path", "") or "")
        if isDotPath(srcPath):
            out.append((_REMOVED, srcPath))
        if destPath and isDotPath(destPath):
            out.append((_CONTENT, destPath))
        return out
    return []



@dataclass
class _PendingAppear:
    handle: asyncio.TimerHandle
    contentSeen: bool



@dataclass
class _EmptyWait:
    deadline: float



class DotWatcher:
    """
    The single recursive watch subscription on the dot directory.

    Turns raw platform events into a stream of CoreEvents on `self.events`:
      - content changes become Appeared, bursts on one path coalesced within `coalesceMs`
      - removals become Vanished; a pending Appeared on the same path is flushed first
      - a directory that disappears becomes Vanished for every dot known under it
      - a file that was only created (no content event yet) is polled until it
        has a non-zero size, then reported as Appeared
    """
    def __init__(
        self,
        store: SnapshotStore,
        *,
        coalesceMs: int = 50,
        emptyPollMs: int = 100,
        emptyPollTimeoutMs: int = 5000,
        queueSize: int = 4096,
        observerFactory: Callable[[], BaseObserver] = Observer,
    ) -> None:
        self.store = store
        self.coalesceSeconds = min(max(0, int(coalesceMs)), MAX_COALESCE_MS) / 1000.0
        self.emptyPollSeconds = max(1, int(emptyPollMs)) / 1000.0
        self.emptyPollTimeoutSeconds = max(0, int(emptyPollTimeoutMs)) / 1000.0
        self.queueSize = max(1, int(queueSize))
        self._observerFactory = observerFactory

        self.events: asyncio.Queue[CoreEvent] = asyncio.Queue(maxsize=self.queueSize)
        self._loop: asyncio.AbstractEventLoop | None = None
        self._observer: BaseObserver | None = None
        self._pending: dict[str, _PendingAppear] = {}
        self._emptyWaits: dict[str, _EmptyWait] = {}
        # Names with an Appeared emitted and no Vanished since
        self._known: set[str] = set()
        self._pollTask: asyncio.Task | None = None
        self._stopped = False

    # ----- Lifecycle -----

    def start(self) -> None:
        """
        Create the watch subscription. Must be called from the event loop that will
        consume `self.events`. Raises WatcherSetupError on failure.
        """
        if self._observer is not None:
            return
        self.bindLoop()
        root = self.store.root
        if not root.is_dir():
            raise WatcherSetupError(f"Dot directory {str(root)!r} does not exist or is not a directory")

        self._known = {entry.name for entry in self.store.list()}
        handler = self.createHandler()
        try:
            observer = self._observerFactory()
            observer.schedule(handler, str(root), recursive=True)
            observer.start()
        except Exception as err:
            raise WatcherSetupError(f"Could not watch {str(root)!r}: {err}") from err

        self._observer = observer
        self._stopped = False
        logger.info("Watching dot files in %s", root)

    def bindLoop(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Attach to the loop that consumes `self.events` (the running one by default)."""
        self._loop = loop or asyncio.get_running_loop()

    def createHandler(self) -> DotEventHandler:
        """A watchdog handler feeding this watcher. bindLoop() must have been called."""
        if self._loop is None:
            raise RuntimeError("DotWatcher is not bound to an event loop")
        return DotEventHandler(self, self._loop)

    def stop(self) -> None:
        """Drop the subscription and any pending coalesced events."""
        self._stopped = True
        for entry in self._pending.values():
            entry.handle.cancel()
        self._pending.clear()
        self._emptyWaits.clear()
        self._known.clear()
        if self._pollTask is not None:
            self._pollTask.cancel()
            self._pollTask = None

        observer = self._observer
        self._observer = None
        if observer is None:
            return
        try:
            observer.stop()
            observer.join(timeout=5)
        except Exception:
            logger.exception("Error while stopping the dot watcher")
        else:
            logger.info("Stopped watching %s", self.store.root)

    def isAlive(self) -> bool:
        """False once the observer or any of its emitters has died."""
        observer = self._observer
        if observer is None or not observer.is_alive():
            return False
        return all(emitter.is_alive() for emitter in observer.emitters)

    # ----- Loop side -----

    def _onRaw(self, kind: str, path: str) -> None:
        if self._stopped:
            return
        if kind == _DIR_REMOVED:
            self._onDirRemoved(path)
            return
        try:
            name = self.store.relative(path)
        except OutsideRootError:
            logger.warning("Ignoring event outside of %s: %s", self.store.root, path)
            return

        if kind == _REMOVED:
            self._settle(name)
            self._emit(Vanished(name))
            return

        entry = self._pending.get(name)
        if entry is not None:
            entry.contentSeen = entry.contentSeen or kind == _CONTENT
            return

        if self._loop is None:
            raise RuntimeError("DotWatcher is not bound to an event loop")
        handle = self._loop.call_later(self.coalesceSeconds, self._flushPending, name)
        self._pending[name] = _PendingAppear(handle=handle, contentSeen=kind == _CONTENT)

    def _settle(self, name: str) -> None:
        """Before a removal: emit the pending Appeared for `name`, if it has content, and stop waiting on it."""
        entry = self._pending.pop(name, None)
        if entry is not None:
            # Never merge an Appeared into the Vanished that follows it
            entry.handle.cancel()
            if entry.contentSeen:
                self._emit(Appeared(name))
        self._emptyWaits.pop(name, None)

    def _onDirRemoved(self, path: str) -> None:
        if self.store.root in (Path(path), Path(path).resolve()):
            prefix = ""
        else:
            try:
                prefix = self.store.relative(path) + "/"
            except OutsideRootError:
                logger.warning("Ignoring directory event outside of %s: %s", self.store.root, path)
                return

        underDir = {name for name in (*self._pending, *self._emptyWaits) if name.startswith(prefix)}
        for name in sorted(underDir):
            self._settle(name)
        gone = sorted(name for name in self._known if name.startswith(prefix))
        if gone:
            logger.info("Directory %s is gone, removing %d dot(s)", prefix.rstrip("/") or self.store.root, len(gone))
        for name in gone:
            self._emit(Vanished(name))

    def _flushPending(self, name: str) -> None:
        entry = self._pending.pop(name, None)
        if entry is not None:
            self._flush(name, entry)

    def _flush(self, name: str, entry: _PendingAppear) -> None:
        if entry.contentSeen:
            self._emptyWaits.pop(name, None)
            self._emit(Appeared(name))
            return

        # Created without a content event yet; wait for bytes to show up
        self._emptyWaits[name] = _EmptyWait(deadline=time.monotonic() + self.emptyPollTimeoutSeconds)
        if self._pollTask is None and self._loop is not None:
            self._pollTask = self._loop.create_task(self._pollEmpty(), name="dots:empty-poll")

    async def _pollEmpty(self) -> None:
        try:
            while self._emptyWaits and not self._stopped:
                await asyncio.sleep(self.emptyPollSeconds)
                for name, wait in list(self._emptyWaits.items()):
                    size = await asyncio.to_thread(self.store.size, name)
                    if self._emptyWaits.get(name) is not wait:
                        # Superseded by a content event or a removal meanwhile
                        continue
                    if size > 0:
                        del self._emptyWaits[name]
                        self._emit(Appeared(name))
                    elif size < 0:
                        del self._emptyWaits[name]
                    elif time.monotonic() >= wait.deadline:
                        del self._emptyWaits[name]
                        logger.debug("Gave up waiting for content in %s", name)
        finally:
            self._pollTask = None

    def _emit(self, event: CoreEvent) -> None:
        if isinstance(event, Appeared):
            self._known.add(event.name)
        else:
            self._known.discard(event.name)
        try:
            self.events.put_nowait(event)
        except asyncio.QueueFull:
            logger.error("Dot event queue is full (%d), dropping %r", self.queueSize, event)
