# gstdots/dots/registry.py
from __future__ import annotations
import threading
from typing import Generic, TypeVar

__all__ = ["ClientRegistry"]

T = TypeVar("T")



class ClientRegistry(Generic[T]):
    """
    Insertion-ordered set of live client handles.

    - register(handle): append if not present
    - unregister(handle): remove by value equality
    - snapshot(): point-in-time copy, safe to iterate without the lock

    The lock is held only for the list operation itself, never across a send.
    """
    def __init__(self) -> None:
        self._handles: list[T] = []
        self._lock = threading.Lock()

    def register(self, handle: T) -> bool:
        """Returns True if the handle was added, False if it was already registered."""
        with self._lock:
            if handle in self._handles:
                return False
            self._handles.append(handle)
            return True

    def unregister(self, handle: T) -> bool:
        """Returns True if the handle was registered."""
        with self._lock:
            before = len(self._handles)
            self._handles = [existing for existing in self._handles if existing != handle]
            return len(self._handles) != before

    def snapshot(self) -> list[T]:
        with self._lock:
            return list(self._handles)

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)

    def __contains__(self, handle: object) -> bool:
        with self._lock:
            return handle in self._handles
