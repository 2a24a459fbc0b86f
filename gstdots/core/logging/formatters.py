# gstdots/core/logging/formatters.py
from __future__ import annotations

import logging

from gstdots.core.jsonutils import safeJsonDumps
from .context import getLogContext

__all__ = ["JsonFormatter", "DevFormatter"]

# Context keys shown on console lines, in this order
CONSOLE_CTX_KEYS = ("clientId", "remote")



class JsonFormatter(logging.Formatter):
    """
    One JSON object per line for the rotating log file.

    {"ts": <ms>, "level": "info", "logger": "...", "msg": "...", "ctx": {...}, "thread": "..."}
    plus "exc" with type, message and formatted stack when the record carries one.
    """
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "ts": int(record.created * 1000),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
            "ctx": getLogContext() or {},
            "thread": record.threadName,
        }
        if record.exc_info and record.exc_info[1] is not None:
            err = record.exc_info[1]
            entry["exc"] = {
                "type": type(err).__name__,
                "message": str(err),
                "stack": self.formatException(record.exc_info),
            }
        return safeJsonDumps(entry)



class DevFormatter(logging.Formatter):
    """`LEVEL: [logger] message [client-3/127.0.0.1:5123]` for the dev console."""
    def format(self, record: logging.LogRecord) -> str:
        line = f"{record.levelname}: [{record.name}] {record.getMessage()}"

        ctx = getLogContext() or {}
        tags = [str(ctx[key]) for key in CONSOLE_CTX_KEYS if ctx.get(key)]
        if tags:
            line += f" [{'/'.join(tags)}]"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        if record.stack_info:
            line += "\n" + self.formatStack(record.stack_info)
        return line
