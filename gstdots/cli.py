# gstdots/cli.py
from __future__ import annotations
import argparse
import logging
import sys
from collections.abc import Sequence

import uvicorn
from fastapi import FastAPI

from gstdots.app.config import ServerConfig, ensureDirectories, resolveServerConfig
from gstdots.app.factory import createApp
from gstdots.app.paths import DOT_DIR_ENV
from gstdots.app.settings import loadSettings
from gstdots.app.state import getRuntime
from gstdots.core.errors import BindError, StartupError
from gstdots.core.logging import configureLogging

logger = logging.getLogger(__name__)

__all__ = ["buildParser", "main", "serve"]



def _port(value: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}") from None
    if not 0 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"port must be between 0 and 65535, got {port}")
    return port



def buildParser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gstdots",
        description="Serve GStreamer pipeline dot dumps live to browsers over WebSocket.",
    )
    parser.add_argument("-a", "--address", default=None, help="Server address (default: 0.0.0.0)")
    parser.add_argument("-p", "--port", type=_port, default=None, help="Server port (default: 3000)")
    parser.add_argument(
        "-d", "--dotdir", default=None,
        help=f"Directory to watch for .dot files (default: ${DOT_DIR_ENV} or the user cache dir)",
    )
    parser.add_argument("--settings", default=None, help="JSON5 settings file")
    parser.add_argument("--log-level", default=None, help="Root log level (DEBUG, INFO, ...)")
    return parser



def serve(app: FastAPI, config: ServerConfig) -> int:
    """Run uvicorn until shutdown. Returns the process exit code."""
    server = uvicorn.Server(uvicorn.Config(
        app,
        host=config.address,
        port=config.port,
        log_config=None,
        lifespan="on",
    ))
    logger.info("Starting server on http://%s", config.bindAddress)
    try:
        server.run()
    except SystemExit as exc:
        # uvicorn exits this way when it cannot bind
        if not server.started:
            err = BindError(f"could not bind {config.bindAddress}")
            print(f"gstdots: {err}", file=sys.stderr)
            return err.exitCode
        return int(exc.code or 0)

    startupError = getRuntime(app).startupError
    if isinstance(startupError, StartupError):
        print(f"gstdots: {startupError}", file=sys.stderr)
        return startupError.exitCode
    if not server.started:
        print("gstdots: server failed to start", file=sys.stderr)
        return 1
    return 0



def main(argv: Sequence[str] | None = None) -> int:
    args = buildParser().parse_args(argv)

    try:
        tree = loadSettings(args.settings)
        config = resolveServerConfig(
            tree,
            address=args.address,
            port=args.port,
            dotDir=args.dotdir,
            logLevel=args.log_level,
        )
    except (OSError, ValueError) as err:
        print(f"gstdots: {err}", file=sys.stderr)
        return 1

    configureLogging(
        devMode=config.devMode,
        level=config.logLevel,
        logFile=config.logFile,
        suppressRecurring=config.suppressRecurring,
    )

    try:
        ensureDirectories(config)
    except StartupError as err:
        print(f"gstdots: {err}", file=sys.stderr)
        return err.exitCode

    return serve(createApp(config), config)
