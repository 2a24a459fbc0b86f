# tests/gstdots/dots/test_registry.py
from __future__ import annotations

import threading

from gstdots.dots.registry import ClientRegistry


def test_register_preservesInsertionOrder() -> None:
    registry: ClientRegistry[str] = ClientRegistry()
    for handle in ("a", "c", "b"):
        assert registry.register(handle) is True

    assert registry.snapshot() == ["a", "c", "b"]


def test_register_isIdempotent() -> None:
    registry: ClientRegistry[str] = ClientRegistry()
    registry.register("a")
    assert registry.register("a") is False
    assert registry.snapshot() == ["a"]
    assert len(registry) == 1


def test_unregister_removesByEquality() -> None:
    registry: ClientRegistry[str] = ClientRegistry()
    registry.register("a")
    registry.register("b")

    assert registry.unregister("a") is True
    assert registry.unregister("a") is False
    assert "a" not in registry
    assert registry.snapshot() == ["b"]


def test_snapshot_isACopy() -> None:
    registry: ClientRegistry[str] = ClientRegistry()
    registry.register("a")
    snap = registry.snapshot()
    registry.register("b")
    snap.append("zzz")

    assert snap == ["a", "zzz"]
    assert registry.snapshot() == ["a", "b"]


def test_concurrentRegisterNeverDuplicates() -> None:
    registry: ClientRegistry[int] = ClientRegistry()
    barrier = threading.Barrier(8)

    def worker() -> None:
        barrier.wait()
        for handle in range(200):
            registry.register(handle)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    snap = registry.snapshot()
    assert sorted(snap) == list(range(200))
    assert len(snap) == len(set(snap))
