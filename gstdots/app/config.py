# gstdots/app/config.py
from __future__ import annotations
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from gstdots.app.paths import DOT_DIR_ENV, defaultDotDir
from gstdots.app.settings import settingsBool, settingsValue
from gstdots.core.errors import DotDirError

logger = logging.getLogger(__name__)

__all__ = ["ServerConfig", "resolveServerConfig", "resolveDotDir", "ensureDirectories"]



@dataclass(frozen=True)
class ServerConfig:
    """Everything the server needs, resolved once at program entry."""
    dotDir: Path
    address: str = "0.0.0.0"
    port: int = 3000
    generatedDir: Path = Path(".generated")
    webRoot: Path | None = None
    coalesceMs: int = 50
    emptyPollMs: int = 100
    emptyPollTimeoutMs: int = 5000
    eventQueueSize: int = 4096
    watchdogIntervalMs: int = 1000
    clientMaxQueue: int = 1024
    devMode: bool = False
    logLevel: str | None = None
    logFile: Path | None = None
    suppressRecurring: dict[str, Any] = field(default_factory=dict)

    @property
    def svgDir(self) -> Path:
        return self.generatedDir / "svg"

    @property
    def htmlDir(self) -> Path:
        return self.generatedDir / "html"

    @property
    def bindAddress(self) -> str:
        return f"{self.address}:{self.port}"



def resolveDotDir(cliDotDir: str | os.PathLike[str] | None, env: Mapping[str, str], settingsDotDir: Any = None) -> Path:
    """--dotdir, then $GST_DEBUG_DUMP_DOT_DIR, then settings, then the per-user cache dir."""
    if cliDotDir:
        return Path(cliDotDir).expanduser()
    envDir = env.get(DOT_DIR_ENV)
    if envDir:
        return Path(envDir).expanduser()
    if settingsDotDir:
        return Path(str(settingsDotDir)).expanduser()
    return defaultDotDir()



def _validPort(value: Any) -> int:
    port = int(value)
    if not 0 <= port <= 65535:
        raise ValueError(f"Port out of range: {port}")
    return port



def resolveServerConfig(
    tree: Mapping[str, Any],
    *,
    env: Mapping[str, str] | None = None,
    address: str | None = None,
    port: int | None = None,
    dotDir: str | os.PathLike[str] | None = None,
    logLevel: str | None = None,
) -> ServerConfig:
    """
    Fold CLI values and environment over a merged settings tree.
    CLI beats environment beats settings beats built-in defaults.
    """
    env = os.environ if env is None else env
    webRoot = settingsValue(tree, "http.webRoot")
    logFile = settingsValue(tree, "debug.logFile")
    suppress = settingsValue(tree, "debug.suppressRecurringMessages", {})

    return ServerConfig(
        dotDir=resolveDotDir(dotDir, env, settingsValue(tree, "dots.dir")),
        address=address or str(settingsValue(tree, "server.address", "0.0.0.0")),
        port=_validPort(port if port is not None else settingsValue(tree, "server.port", 3000)),
        generatedDir=Path(str(settingsValue(tree, "generated.dir", ".generated"))).expanduser(),
        webRoot=Path(str(webRoot)).expanduser() if webRoot else None,
        coalesceMs=int(settingsValue(tree, "dots.coalesceMs", 50)),
        emptyPollMs=int(settingsValue(tree, "dots.emptyPollMs", 100)),
        emptyPollTimeoutMs=int(settingsValue(tree, "dots.emptyPollTimeoutMs", 5000)),
        eventQueueSize=int(settingsValue(tree, "dots.eventQueueSize", 4096)),
        watchdogIntervalMs=int(settingsValue(tree, "dots.watchdogIntervalMs", 1000)),
        clientMaxQueue=int(settingsValue(tree, "clients.maxQueue", 1024)),
        devMode=settingsBool(tree, "debug.devModeEnabled", False),
        logLevel=logLevel,
        logFile=Path(str(logFile)).expanduser() if logFile else None,
        suppressRecurring=dict(suppress) if isinstance(suppress, Mapping) else {},
    )



def ensureDirectories(config: ServerConfig) -> None:
    """Create the dot directory and the generated output directories. Raises DotDirError."""
    for directory in (config.dotDir, config.svgDir, config.htmlDir):
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as err:
            raise DotDirError(f"Failed to create directory '{directory}': {err}") from err
    logger.debug("Directories ready: dots=%s generated=%s", config.dotDir, config.generatedDir)
