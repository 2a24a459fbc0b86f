# gstdots/core/time.py
from __future__ import annotations
import os
import time

__all__ = ["nowMs", "mtimeMs"]



def nowMs() -> int:
    return int(time.time() * 1000)



def mtimeMs(stat: os.stat_result) -> int:
    """Whole milliseconds since the epoch for a stat result's modification time."""
    return max(0, stat.st_mtime_ns // 1_000_000)
