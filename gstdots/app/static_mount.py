# gstdots/app/static_mount.py
from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from gstdots.app.config import ServerConfig

logger = logging.getLogger(__name__)



def mountStatic(app: FastAPI, config: ServerConfig) -> None:
    """Rendered SVGs, viewer pages and the browser UI. Call after all routers."""
    app.mount("/svg", StaticFiles(directory=config.svgDir, check_dir=False), name="svg")
    app.mount("/viewer", StaticFiles(directory=config.htmlDir, html=True, check_dir=False), name="viewer")

    webRoot = config.webRoot
    if webRoot is not None and webRoot.is_dir():
        # Mount "/" LAST so it doesn't shadow other routes!
        app.mount("/", StaticFiles(directory=webRoot, html=True), name="web")
        logger.info("Static mounted at / -> %s", webRoot)
    elif webRoot is not None:
        logger.warning("http.webRoot '%s' not found; viewer UI hosting disabled.", webRoot)
    else:
        logger.debug("No http.webRoot configured; viewer UI hosting disabled.")
