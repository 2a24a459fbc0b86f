# gstdots/app/paths.py
from __future__ import annotations
from pathlib import Path

import platformdirs



# Package directory constants
APP_DIR = Path(__file__).resolve().parent   # gstdots/app/
PACKAGE_DIR = APP_DIR.parent                # gstdots/

DOT_DIR_ENV = "GST_DEBUG_DUMP_DOT_DIR"
SETTINGS_ENV = "GSTDOTS_SETTINGS"
DOT_DIR_NAME = "gstreamer-dots"



def defaultDotDir() -> Path:
    """Per-user cache directory joined with `gstreamer-dots`."""
    return Path(platformdirs.user_cache_dir()) / DOT_DIR_NAME



def defaultSettingsPath() -> Path:
    return Path(platformdirs.user_config_dir("gstdots")) / "gstdots.json5"
