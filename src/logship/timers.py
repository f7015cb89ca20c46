"""Wall-clock periodic timer on top of asyncio tasks."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

logger = logging.getLogger("logship.timers")

TickCallback = Callable[[], Awaitable[None]]


class PeriodicTimer:
    """Launches ``callback`` every ``interval`` seconds.

    Each tick runs as its own task and the next tick is not delayed by the
    previous one, so slow callbacks may overlap. ``stop()`` cancels future
    ticks only; ticks already running finish normally.
    """

    def __init__(self, interval: float, callback: TickCallback, *, name: str = "timer") -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._interval = interval
        self._callback = callback
        self._name = name
        self._task: Optional[asyncio.Task[None]] = None
        self._inflight: Set[asyncio.Task[None]] = set()

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    def start(self, interval: Optional[float] = None) -> None:
        if self.active:
            return
        if interval is not None:
            if interval <= 0:
                raise ValueError("interval must be positive")
            self._interval = interval
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._schedule(), name=f"logship-{self._name}")

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def wait_idle(self) -> None:
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    async def _schedule(self) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._interval
        while True:
            await asyncio.sleep(max(0.0, deadline - loop.time()))
            deadline += self._interval
            if deadline <= loop.time():
                # Fell behind (loop stalled); skip the missed ticks.
                deadline = loop.time() + self._interval
            self._launch()

    def _launch(self) -> None:
        task = asyncio.ensure_future(self._callback())
        self._inflight.add(task)
        task.add_done_callback(self._finished)

    def _finished(self, task: asyncio.Task[None]) -> None:
        self._inflight.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("%s tick failed", self._name, exc_info=exc)


__all__ = ["PeriodicTimer"]
