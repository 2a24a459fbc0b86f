# gstdots/app/settings.py
from __future__ import annotations
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, cast

import json5
from pydantic import JsonValue

from gstdots.app.paths import PACKAGE_DIR, SETTINGS_ENV, defaultSettingsPath
from gstdots.core.dictpath import getByPath

logger = logging.getLogger(__name__)

__all__ = [
    "SETTINGS_DEFAULT_PATH", "DEFAULT_SETTINGS", "loadSettings", "loadSettingsFile",
    "deepMerge", "settingsValue", "settingsBool",
]


SETTINGS_DEFAULT_PATH = PACKAGE_DIR / "settings_default.json5"

DEFAULT_SETTINGS: dict[str, JsonValue] = {
    "server": {"address": "0.0.0.0", "port": 3000},
    "dots": {
        "dir": None,
        "coalesceMs": 50,
        "emptyPollMs": 100,
        "emptyPollTimeoutMs": 5000,
        "eventQueueSize": 4096,
        "watchdogIntervalMs": 1000,
    },
    "clients": {"maxQueue": 1024},
    "generated": {"dir": ".generated"},
    "http": {"webRoot": None},
    "debug": {
        "devModeEnabled": False,
        "logFile": None,
        "suppressRecurringMessages": {"enabled": False, "windowSeconds": 60, "maxPerWindow": 5, "summaryLevel": "INFO"},
    },
}



def loadSettingsFile(filePath: Path, *, required: bool = False) -> dict[str, JsonValue]:
    """
    Parse a JSON5 settings file. A missing optional file is an empty mapping;
    a broken file is logged and ignored unless `required`.
    """
    if not filePath.exists():
        if required:
            raise FileNotFoundError(f"Settings file '{filePath}' not found")
        return {}
    try:
        data = json5.loads(filePath.read_text(encoding="utf-8"))
    except Exception as err:
        if required:
            raise ValueError(f"Failed to parse '{filePath}': {err}") from err
        logger.error("Failed to parse '%s': %s", filePath, err)
        return {}
    if not isinstance(data, Mapping):
        logger.error("Settings file '%s' must contain an object, got %s", filePath, type(data).__name__)
        return {}
    return cast("dict[str, JsonValue]", dict(data))



def loadSettings(path: str | Path | None = None, *, env: Mapping[str, str] | None = None) -> dict[str, JsonValue]:
    """
    Merged settings tree: built-in defaults, then the shipped defaults file (if present),
    then the user file. An explicit `path` must exist; otherwise the user file comes from
    $GSTDOTS_SETTINGS or the per-user config directory.
    """
    env = os.environ if env is None else env
    merged: JsonValue = DEFAULT_SETTINGS
    merged = deepMerge(merged, loadSettingsFile(SETTINGS_DEFAULT_PATH))

    if path is not None:
        userFile = loadSettingsFile(Path(path).expanduser(), required=True)
    else:
        envPath = env.get(SETTINGS_ENV)
        userFile = loadSettingsFile(Path(envPath).expanduser() if envPath else defaultSettingsPath())
    merged = deepMerge(merged, userFile)
    return cast("dict[str, JsonValue]", merged)



def deepMerge(first: JsonValue, second: JsonValue) -> JsonValue:
    """
    Returns a new JsonValue where keys from `second` override/extend `first`.
    Only merges recursively when BOTH sides are JSON objects (dicts).
    For all other JSON types the right-hand value `second` replaces `first`.
    """
    if isinstance(first, dict) and isinstance(second, dict):
        out: dict[str, JsonValue] = {}
        for key, value in first.items():
            out[key] = cast(JsonValue, value)
        for key, value in second.items():
            if key in out:
                out[key] = deepMerge(out[key], cast(JsonValue, value))
            else:
                out[key] = cast(JsonValue, value)
        return cast(JsonValue, out)

    return cast(JsonValue, second)

# ---------- Ergonomic accessors over a merged tree ----------

def settingsValue(tree: Mapping[str, Any], path: str, default: Any = None) -> Any:
    """Returns value at `path` from `tree`, or `default` if missing or null."""
    val = getByPath(tree, path)
    return default if val is None else val



def settingsBool(tree: Mapping[str, Any], path: str, default: bool = False) -> bool:
    val = getByPath(tree, path)
    if isinstance(val, bool):
        return val
    if val is None:
        return default
    if isinstance(val, str):
        return val.strip().lower() in ("1", "true", "yes", "on")
    return bool(val)
