# gstdots/core/logging/context.py
from __future__ import annotations
import contextvars

# All log context lives here. Enriched per WebSocket connection.
_logContextVar: contextvars.ContextVar[dict[str, object] | None] = contextvars.ContextVar("gstdots.logctx", default=None)

def setLogContext(**kvs: object) -> None:
    """Set or update per-log context values (clientId, remote, etc.)."""
    current = dict(_logContextVar.get() or {}) # use copy
    for key, value in kvs.items():
        if value is not None:
            current[key] = value
    _logContextVar.set(current)

def clearLogContext() -> None:
    """Clear context after a connection is fully handled."""
    _logContextVar.set(None)

def getLogContext() -> dict[str, object] | None:
    """Return current context dict or None."""
    return _logContextVar.get()
