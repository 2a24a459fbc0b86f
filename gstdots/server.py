# gstdots/server.py
# Module-level app for `uvicorn gstdots.server:app`; `gstdots` (cli.py) is the usual entry point.
from __future__ import annotations

import logging

from gstdots.app.config import ensureDirectories, resolveServerConfig
from gstdots.app.factory import createApp
from gstdots.app.settings import loadSettings

# Basic logging setup; uvicorn owns the handlers when run this way
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

config = resolveServerConfig(loadSettings())
ensureDirectories(config)
app = createApp(config)
