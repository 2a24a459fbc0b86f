# gstdots/app/lifecycle.py
from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from gstdots.app.state import DotsRuntime, getRuntime
from gstdots.core.errors import EXIT_WATCHER_DEAD, StartupError
from gstdots.dots.cleanup import cleanupGenerated

logger = logging.getLogger(__name__)



def exitOnWatcherDeath() -> None:
    """Default reaction to a dead subscription: leave with a non-zero code for the supervisor."""
    logging.shutdown()
    os._exit(EXIT_WATCHER_DEAD)



async def monitorWatcher(runtime: DotsRuntime) -> None:
    """Poll the watch subscription; report once if it is found dead."""
    interval = max(10, runtime.config.watchdogIntervalMs) / 1000.0
    while True:
        await asyncio.sleep(interval)
        if runtime.watcher.isAlive():
            continue
        logger.critical("Dot watcher on %s died, shutting down", runtime.store.root)
        onDead = runtime.onWatcherDead or exitOnWatcherDeath
        onDead()
        return



@asynccontextmanager
async def life(app: FastAPI) -> AsyncIterator[None]:
    # --------------- Startup ---------------
    runtime = getRuntime(app)
    config = runtime.config

    try:
        await asyncio.to_thread(
            cleanupGenerated, runtime.store, {"svg": config.svgDir, "html": config.htmlDir}
        )
    except OSError:
        logger.exception("Cleanup of generated files in %s failed", config.generatedDir)

    try:
        runtime.watcher.start()
    except StartupError as err:
        runtime.startupError = err
        logger.error("%s", err)
        raise

    runtime.tasks = [
        asyncio.create_task(runtime.broker.run(runtime.watcher.events), name="dots:broker"),
        asyncio.create_task(monitorWatcher(runtime), name="dots:watcher-monitor"),
    ]
    logger.info("Serving dots from %s", runtime.store.root)
    yield

    # --------------- Shutdown ---------------
    for task in runtime.tasks:
        task.cancel()
    for task in runtime.tasks:
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("Task %s failed during shutdown", task.get_name())
    runtime.tasks = []

    runtime.watcher.stop()
    closed = runtime.broker.closeAll()
    logger.info("Closed %d client(s)", closed)
