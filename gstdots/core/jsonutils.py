# gstdots/core/jsonutils.py
from __future__ import annotations

import json
import math
from collections.abc import Iterable, Mapping
from dataclasses import asdict, is_dataclass
from datetime import date
from enum import Enum
from pathlib import PurePath
from typing import Any

from pydantic import BaseModel

__all__ = ["safeJsonDumps", "tryJSONify", "decodeText"]

_SEPARATORS = (",", ":")



def safeJsonDumps(obj: object | BaseModel) -> str:
    """
    Compact single-line JSON (no spaces, no NaN, UTF-8 kept as-is).

    Pydantic models are dumped by alias. Anything `json` cannot encode
    directly goes through tryJSONify() first.
    """
    payload = obj.model_dump(by_alias=True) if isinstance(obj, BaseModel) else obj
    try:
        return json.dumps(payload, ensure_ascii=False, allow_nan=False, separators=_SEPARATORS)
    except (TypeError, ValueError):
        return json.dumps(tryJSONify(payload), ensure_ascii=False, allow_nan=False, separators=_SEPARATORS)



def decodeText(content: bytes) -> str:
    """Snapshot bytes as text for the wire. Invalid UTF-8 becomes U+FFFD."""
    return content.decode("utf-8", errors="replace")



def tryJSONify(obj: Any, *, maxDepth: int = 10) -> Any:
    """
    Best-effort conversion to plain JSON types, used for log records and
    context values that may hold paths, bytes, exceptions or models.

    Non-finite floats become None, bytes are decoded like dot content,
    cycles and over-deep nesting are replaced by a marker string and
    anything unknown falls back to repr().
    """
    return _jsonify(obj, set(), 0, maxDepth)



def _jsonify(obj: Any, seen: set[int], depth: int, maxDepth: int) -> Any:
    if obj is None or isinstance(obj, (bool, int, str)):
        return obj
    if isinstance(obj, float):
        return obj if math.isfinite(obj) else None
    if isinstance(obj, (bytes, bytearray)):
        return decodeText(bytes(obj))
    if isinstance(obj, PurePath):
        return obj.as_posix()
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, BaseException):
        return {"type": type(obj).__name__, "message": str(obj)}

    if id(obj) in seen:
        return f"<circular_ref {type(obj).__name__}>"
    if depth >= maxDepth:
        return f"<max_depth_exceeded {type(obj).__name__}>"

    seen.add(id(obj))
    try:
        if isinstance(obj, Enum):
            return _jsonify(obj.value, seen, depth + 1, maxDepth)
        if isinstance(obj, BaseModel):
            return _jsonify(obj.model_dump(by_alias=True), seen, depth + 1, maxDepth)
        if is_dataclass(obj) and not isinstance(obj, type):
            return _jsonify(asdict(obj), seen, depth + 1, maxDepth)
        if isinstance(obj, Mapping):
            return {str(key): _jsonify(value, seen, depth + 1, maxDepth) for key, value in obj.items()}
        if isinstance(obj, Iterable):
            return [_jsonify(value, seen, depth + 1, maxDepth) for value in obj]
    finally:
        seen.discard(id(obj))
    return repr(obj)
