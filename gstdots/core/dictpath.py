# gstdots/core/dictpath.py
from __future__ import annotations
from collections.abc import Mapping
from typing import Any

__all__ = ["getByPath", "splitPath"]

_MISSING = object()



def splitPath(path: str) -> list[str]:
    """
    Split a dotted path into its keys. Empty segments are rejected.

    "server.port" -> ["server", "port"]
    """
    if not isinstance(path, str):
        raise TypeError("path must be a str")
    path = path.strip()
    if not path:
        return []
    parts = path.split(".")
    if any(not part for part in parts):
        raise ValueError(f"Invalid dotted path: {path!r}")
    return parts



def getByPath(data: Any, path: str, default: Any = None) -> Any:
    """
    Read a value from nested mappings using a dotted path.
    Returns `default` when any segment is missing or a non-mapping is hit on the way.
    """
    current: Any = data
    for key in splitPath(path):
        if not isinstance(current, Mapping):
            return default
        current = current.get(key, _MISSING)
        if current is _MISSING:
            return default
    return current
