# gstdots/dots/client.py
from __future__ import annotations
import asyncio
import itertools
import logging

logger = logging.getLogger(__name__)

__all__ = ["DotClient"]

_clientSeq = itertools.count(1)



class DotClient:
    """
    Send side of one WebSocket session, addressed by the broker as an opaque handle.

    Equality is identity. Outbound text frames go through a bounded queue; offer()
    never blocks. A full queue closes the client, the connection notices and
    unregisters it.
    """
    def __init__(self, *, maxQueue: int = 1024, label: str | None = None) -> None:
        self.id = next(_clientSeq)
        self.label = label or f"client-{self.id}"
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=max(1, int(maxQueue)))
        self._closed = asyncio.Event()
        self.closeReason: str | None = None
        self.sentCount = 0
        self.droppedCount = 0

    def __repr__(self) -> str:
        return f"DotClient({self.label!r}, queued={self._queue.qsize()}, closed={self.closed})"

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def offer(self, text: str) -> bool:
        """Non-blocking enqueue. Returns False if the client is closed or its queue is full."""
        if self._closed.is_set():
            self.droppedCount += 1
            return False
        try:
            self._queue.put_nowait(text)
        except asyncio.QueueFull:
            self.droppedCount += 1
            logger.warning("Outbound queue of %s is full (%d), closing it", self.label, self._queue.maxsize)
            self.close("queue full")
            return False
        return True

    def close(self, reason: str = "closed") -> None:
        if not self._closed.is_set():
            self.closeReason = reason
            self._closed.set()

    async def nextMessage(self) -> str | None:
        """
        Wait for the next queued frame. Returns None once the client is closed;
        frames still queued at that point are discarded.
        """
        if self._closed.is_set():
            return None
        if not self._queue.empty():
            return self._queue.get_nowait()

        getter = asyncio.ensure_future(self._queue.get())
        closer = asyncio.ensure_future(self._closed.wait())
        try:
            done, _pending = await asyncio.wait({getter, closer}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (getter, closer):
                if not task.done():
                    task.cancel()

        if getter in done and not self._closed.is_set():
            return getter.result()
        return None

    def drainNowait(self) -> list[str]:
        """Everything currently queued, without waiting. Used for the shutdown log and in tests."""
        out: list[str] = []
        while not self._queue.empty():
            out.append(self._queue.get_nowait())
        return out
