# gstdots/app/factory.py
from __future__ import annotations
import logging
from collections.abc import Sequence

from fastapi import APIRouter, FastAPI

from gstdots.app.config import ServerConfig
from gstdots.app.lifecycle import life
from gstdots.app.state import DotsRuntime
from gstdots.app.static_mount import mountStatic

logger = logging.getLogger(__name__)



def createApp(config: ServerConfig, *, extraRouters: Sequence[APIRouter] = (), runtime: DotsRuntime | None = None) -> FastAPI:
    """
    Build the FastAPI application for one dot directory.
    The core is wired here and started/stopped by the lifespan.
    """
    app = FastAPI(title="gstdots", lifespan=life)
    app.state.dots = runtime if runtime is not None else DotsRuntime.fromConfig(config)

    # ----- Routers first -----
    from gstdots.app.dots_ws import router as dotsRouter
    from gstdots.app.web import router as webRouter

    app.include_router(dotsRouter)
    app.include_router(webRouter)

    for router in extraRouters:
        app.include_router(router)

    # ----- Static comes last so it doesn't shadow routes -----
    mountStatic(app, config)

    logger.info("Backend initialized for %s with %d extra router(s)", config.dotDir, len(extraRouters))
    return app
