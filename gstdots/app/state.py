# gstdots/app/state.py
from __future__ import annotations
import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from fastapi import FastAPI, WebSocket

from gstdots.app.config import ServerConfig
from gstdots.dots.broker import DotBroker
from gstdots.dots.store import SnapshotStore
from gstdots.dots.watcher import DotWatcher

logger = logging.getLogger(__name__)

__all__ = ["DotsRuntime", "getRuntime", "getRuntimeForWs"]



@dataclass
class DotsRuntime:
    """
    Per-application wiring of the core. Lives on `app.state.dots`.
    """
    config: ServerConfig
    store: SnapshotStore
    watcher: DotWatcher
    broker: DotBroker
    tasks: list[asyncio.Task] = field(default_factory=list)
    startupError: BaseException | None = None
    onWatcherDead: Callable[[], None] | None = None

    @classmethod
    def fromConfig(cls, config: ServerConfig) -> DotsRuntime:
        store = SnapshotStore(config.dotDir)
        watcher = DotWatcher(
            store,
            coalesceMs=config.coalesceMs,
            emptyPollMs=config.emptyPollMs,
            emptyPollTimeoutMs=config.emptyPollTimeoutMs,
            queueSize=config.eventQueueSize,
        )
        return cls(config=config, store=store, watcher=watcher, broker=DotBroker(store))



def getRuntime(app: FastAPI) -> DotsRuntime:
    runtime = getattr(app.state, "dots", None)
    if runtime is None:
        raise RuntimeError("gstdots runtime is not initialized on this application")
    return runtime



def getRuntimeForWs(ws: WebSocket) -> DotsRuntime:
    return getRuntime(ws.app)
