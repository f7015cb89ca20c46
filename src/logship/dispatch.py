"""Timer-driven routing of queued events to the collector or the backlog."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from . import metrics
from .backlog import BacklogStore
from .connectivity import ConnectivityMonitor
from .errors import TransientDeliveryError, TransientPersistenceError
from .models import Event
from .queue import PendingQueue
from .sink import CollectorSink
from .timers import PeriodicTimer

logger = logging.getLogger("logship.dispatch")

UNEXPECTED_ACTION = "unexpected"


class DispatchLoop:
    """Pops at most one event per tick and routes it.

    While the collector is reachable events are sent over the network; a
    failed send puts the event back at the tail of the queue. While offline
    events are written to the backlog. The first tick that finds the network
    back after an offline tick reloads the backlog into the queue before
    sending. Reloading is driven by events: with an empty queue nothing
    happens, so a backlog is only drained once something new is logged.
    """

    def __init__(
        self,
        queue: PendingQueue,
        monitor: ConnectivityMonitor,
        sink: CollectorSink,
        backlog: BacklogStore,
    ) -> None:
        self._queue = queue
        self._monitor = monitor
        self._sink = sink
        self._backlog = backlog
        # True until a connected tick has reloaded the backlog, so leftovers
        # from a previous process are picked up on the first delivery.
        self.was_disconnected = True
        self._timer: Optional[PeriodicTimer] = None
        self._reloading: Optional[asyncio.Future[int]] = None

    @property
    def sink(self) -> CollectorSink:
        return self._sink

    @property
    def active(self) -> bool:
        return self._timer is not None and self._timer.active

    def start(self, interval: float) -> None:
        # One timer for the object's lifetime so wait_idle() sees every tick.
        if self._timer is None:
            self._timer = PeriodicTimer(interval, self.tick, name="dispatch")
        self._timer.stop()
        self._timer.start(interval)

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.stop()

    async def wait_idle(self) -> None:
        if self._timer is not None:
            await self._timer.wait_idle()

    async def tick(self) -> None:
        event = self._queue.pop()
        if event is None:
            return

        if self._monitor.connected:
            if self.was_disconnected:
                await self._reload_backlog()
                self.was_disconnected = False
            await self._deliver(event)
        else:
            self.was_disconnected = True
            await self._persist(event)

    async def _reload_backlog(self) -> int:
        # Ticks overlapping a reload wait for it instead of starting another.
        if self._reloading is None or self._reloading.done():
            self._reloading = asyncio.ensure_future(self.reconcile())
        return await asyncio.shield(self._reloading)

    async def reconcile(self) -> int:
        """Move every backlog file back into the queue; returns the count reloaded."""
        try:
            await self._backlog.ensure()
            names = await self._backlog.list()
        except TransientPersistenceError as exc:
            logger.warning("Backlog reload skipped: %s", exc)
            return 0

        if not names:
            return 0

        results = await asyncio.gather(*(self._reload(name) for name in names))
        reloaded = sum(results)
        logger.info("Reloaded %d of %d backlog files from %s", reloaded, len(names), self._backlog.directory)
        return reloaded

    async def _reload(self, name: str) -> int:
        try:
            event = await self._backlog.read(name)
        except TransientPersistenceError as exc:
            logger.error("Discarding backlog file %s: %s", name, exc)
            self._report(name, exc)
            await self._discard(name)
            return 0

        self._queue.push(event)
        metrics.BACKLOG_RELOADED.inc()
        await self._discard(name)
        return 1

    async def _discard(self, name: str) -> None:
        try:
            await self._backlog.delete(name)
        except TransientPersistenceError as exc:
            logger.error("Failed to remove backlog file %s: %s", name, exc)

    def _report(self, name: str, exc: Exception) -> None:
        self._queue.push(Event.create(UNEXPECTED_ACTION, {"error": str(exc), "file": name}))

    async def _deliver(self, event: Event) -> None:
        try:
            await self._sink.send(event)
        except TransientDeliveryError:
            self._queue.push(event)
            metrics.EVENTS_REQUEUED.inc()
            return
        metrics.EVENTS_DELIVERED.inc()

    async def _persist(self, event: Event) -> None:
        try:
            await self._backlog.write(event)
        except TransientPersistenceError as exc:
            logger.error("Dropping event action=%s date=%s: %s", event.action, event.date, exc)
            metrics.EVENTS_DROPPED.labels(reason="backlog_write").inc()
            return
        metrics.EVENTS_PERSISTED.inc()


__all__ = ["DispatchLoop", "UNEXPECTED_ACTION"]
