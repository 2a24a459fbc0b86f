# gstdots/core/logging/setup.py
from __future__ import annotations
import logging
import logging.handlers
from pathlib import Path
from typing import Any

from .formatters import DevFormatter, JsonFormatter
from .filters import RecurringSuppressFilter

__all__ = [
    "NO_PROPAGATE",
    "configureLogging",
]



# Disable propagation from common libraries
NO_PROPAGATE = [
    "uvicorn.access",
    "concurrent.futures", "asyncio",
]



def configureLogging(
    *,
    devMode: bool = False,
    level: str | int | None = None,
    logFile: str | Path | None = None,
    suppressRecurring: dict[str, Any] | None = None,
) -> None:
    """
    Initiate the global logging configuration.

    Dev:
      - Console pretty logs (DEBUG)
    Default:
      - Console INFO
    Both:
      - Optional JSON file log with rotation
      - Optional recurring suppression
    """
    if level is None:
        rootLevel = logging.DEBUG if devMode else logging.INFO
    elif isinstance(level, str):
        rootLevel = logging.getLevelName(level.upper())
        if not isinstance(rootLevel, int):
            rootLevel = logging.INFO
    else:
        rootLevel = int(level)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(rootLevel)

    for name in NO_PROPAGATE:
        logging.getLogger(name).propagate = False

    handlers: list[logging.Handler] = []

    consoleHandler = logging.StreamHandler()
    consoleHandler.setLevel(rootLevel)
    consoleHandler.setFormatter(DevFormatter() if devMode else logging.Formatter(
        "%(asctime)s %(levelname)s [%(name)s] %(message)s"
    ))
    handlers.append(consoleHandler)

    if logFile:
        fileHandler = logging.handlers.RotatingFileHandler(
            str(logFile),
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8"
        )
        fileHandler.setLevel(rootLevel)
        fileHandler.setFormatter(JsonFormatter())
        handlers.append(fileHandler)

    suppress = suppressRecurring or {}
    if suppress.get("enabled", False):
        levelName = str(suppress.get("summaryLevel", "INFO")).upper()
        summaryLevel = getattr(logging, levelName, logging.INFO)

        suppressFilter = RecurringSuppressFilter(
            windowSeconds=int(suppress.get("windowSeconds", 60)),
            maxPerWindow=int(suppress.get("maxPerWindow", 5)),
            summaryLevel=summaryLevel,
        )
        for handler in handlers:
            handler.addFilter(suppressFilter)

    for handler in handlers:
        root.addHandler(handler)

    # Per-logger tweaks (reduce noise)
    logging.getLogger("watchdog").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("fastapi").setLevel(logging.INFO)
