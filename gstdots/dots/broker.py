# gstdots/dots/broker.py
from __future__ import annotations
import asyncio
import logging

from gstdots.core.errors import SnapshotError, SnapshotNotFoundError
from gstdots.dots.client import DotClient
from gstdots.dots.events import Appeared, CoreEvent, Vanished
from gstdots.dots.messages import DotRemoved, NewDot, encodeMessage, newDotFromSnapshot
from gstdots.dots.registry import ClientRegistry
from gstdots.dots.store import SnapshotStore

logger = logging.getLogger(__name__)

__all__ = ["DotBroker"]



class DotBroker:
    """
    Bridges CoreEvents and the connected clients.

    - run(events): single consumer of the watcher's queue; fans each event out
    - join(client): registers a client and enqueues the replay of current state
    - leave(client): unregisters and closes a client

    Steady-state dispatch and join replay are serialized by one asyncio lock, so a
    joining client sees every event either through the replay or as a message
    enqueued after it. The registry lock is only held inside registry calls.
    """
    def __init__(self, store: SnapshotStore, registry: ClientRegistry[DotClient] | None = None) -> None:
        self.store = store
        self.registry: ClientRegistry[DotClient] = registry if registry is not None else ClientRegistry()
        self._dispatchLock = asyncio.Lock()

    # ----- Steady state -----

    async def run(self, events: asyncio.Queue[CoreEvent]) -> None:
        """Consume events until cancelled. A failing event is logged and dropped."""
        logger.debug("Broker started for %s", self.store.root)
        while True:
            event = await events.get()
            try:
                await self.dispatch(event)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Failed to dispatch %r", event)
            finally:
                events.task_done()

    async def dispatch(self, event: CoreEvent) -> int:
        """Fan one event out. Returns the number of clients it was enqueued to."""
        async with self._dispatchLock:
            clients = self.registry.snapshot()
            if isinstance(event, Appeared):
                message = await self._buildNewDot(event.name)
                if message is None:
                    return 0
                logger.info("Dot updated: %s", event.name)
            elif isinstance(event, Vanished):
                message = DotRemoved(
                    name=event.name,
                    creation_time=await asyncio.to_thread(self.store.mtimeMs, event.name),
                )
                logger.info("Dot removed: %s", event.name)
            else:
                logger.warning("Unknown core event %r", event)
                return 0

            return self._fanOut(clients, encodeMessage(message), event.name)

    def _fanOut(self, clients: list[DotClient], text: str, name: str) -> int:
        delivered = 0
        for client in clients:
            if client.offer(text):
                delivered += 1
                logger.debug("Sent %s to %s", name, client.label)
            else:
                logger.debug("Could not enqueue %s to %s (%s)", name, client.label, client.closeReason)
        return delivered

    async def _buildNewDot(self, name: str) -> NewDot | None:
        try:
            snapshot = await asyncio.to_thread(self.store.read, name)
        except SnapshotNotFoundError:
            logger.debug("Dot %s vanished before it could be read", name)
            return None
        except SnapshotError as err:
            logger.error("Could not read dot %s: %s", name, err)
            return None

        if snapshot.isEmpty:
            logger.warning("Ignoring empty dot file %s", name)
            return None
        return newDotFromSnapshot(snapshot)

    # ----- Clients -----

    async def join(self, client: DotClient) -> int:
        """
        Register `client` and enqueue the replay of every non-empty snapshot,
        oldest first. Returns the number of replayed snapshots.
        """
        async with self._dispatchLock:
            if not self.registry.register(client):
                logger.warning("Client %s is already registered", client.label)
                return 0
            logger.info("Client added: %s", client.label)
            return await self._replay(client)

    async def _replay(self, client: DotClient) -> int:
        entries = await asyncio.to_thread(self.store.list)
        logger.debug("Replaying %d dot files to %s", len(entries), client.label)

        # Read everything first; the enqueue loop below does not suspend
        messages: list[NewDot] = []
        for entry in entries:
            message = await self._buildNewDot(entry.name)
            if message is not None:
                messages.append(message)

        replayed = 0
        for message in messages:
            if not client.offer(encodeMessage(message)):
                logger.warning("Stopped replay to %s after %d dots (%s)", client.label, replayed, client.closeReason)
                break
            replayed += 1
        return replayed

    def leave(self, client: DotClient) -> None:
        """Unregister `client`; nothing is enqueued to it after this returns."""
        client.close("left")
        if self.registry.unregister(client):
            logger.info("Client removed: %s", client.label)

    def closeAll(self, reason: str = "shutdown") -> int:
        clients = self.registry.snapshot()
        for client in clients:
            client.close(reason)
            self.registry.unregister(client)
        return len(clients)

    @property
    def clientCount(self) -> int:
        return len(self.registry)
