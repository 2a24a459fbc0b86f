from __future__ import annotations
import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field

__all__ = ["RecurringSuppressFilter"]

# Longest message text kept as part of a key
MAX_KEY_LEN = 256
# Window table size that triggers a sweep of idle keys
SWEEP_THRESHOLD = 2048

_SUMMARY_FLAG = "_gstdotsSummary"



@dataclass
class _Window:
    hits: deque[float] = field(default_factory=deque)
    suppressed: int = 0



class RecurringSuppressFilter(logging.Filter):
    """
    Lets at most `maxPerWindow` identical records through per `windowSeconds`.

    A producer that keeps rewriting the same empty or unreadable dot file would
    otherwise flood the log with one line per write. Records are keyed by logger,
    level and rendered message. When a key is let through again after some of its
    records were dropped, a "Suppressed N ..." line is logged first.

    Shared by the console and file handlers; the watchdog thread and the event
    loop both log through it.
    """
    def __init__(self, *, windowSeconds: float = 60, maxPerWindow: int = 5, summaryLevel: int = logging.INFO) -> None:
        super().__init__()
        self.windowSeconds = max(1.0, float(windowSeconds))
        self.maxPerWindow = max(1, int(maxPerWindow))
        self.summaryLevel = int(summaryLevel)
        self._windows: dict[tuple[str, int, str], _Window] = {}
        self._lock = threading.RLock()

    @staticmethod
    def keyOf(record: logging.LogRecord) -> tuple[str, int, str]:
        try:
            text = record.getMessage()
        except (TypeError, ValueError):
            text = str(record.msg)
        text = " ".join(text.split())[:MAX_KEY_LEN]
        return record.name, record.levelno, text

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, _SUMMARY_FLAG, False):
            return True

        now = time.monotonic()
        key = self.keyOf(record)
        with self._lock:
            if len(self._windows) > SWEEP_THRESHOLD:
                self._sweep(now)
            window = self._windows.setdefault(key, _Window())
            while window.hits and window.hits[0] <= now - self.windowSeconds:
                window.hits.popleft()

            window.hits.append(now)
            if len(window.hits) > self.maxPerWindow:
                window.suppressed += 1
                return False

            dropped, window.suppressed = window.suppressed, 0

        if dropped:
            name, _level, text = key
            # Re-enters filter() on the same handler; the flag lets it through
            logging.getLogger(name).log(
                self.summaryLevel,
                "Suppressed %d repeated log line(s): %s",
                dropped,
                text,
                extra={_SUMMARY_FLAG: True},
            )
        return True

    def _sweep(self, now: float) -> None:
        horizon = now - self.windowSeconds
        for key in [k for k, w in self._windows.items() if not w.suppressed and (not w.hits or w.hits[-1] <= horizon)]:
            del self._windows[key]
