from __future__ import annotations

import asyncio
import time

import pytest

from logship.queue import PendingQueue
from logship.timers import PeriodicTimer


@pytest.mark.asyncio
async def test_stop_lets_running_tick_finish() -> None:
    finished: list[int] = []

    async def slow_tick() -> None:
        await asyncio.sleep(0.05)
        finished.append(1)

    timer = PeriodicTimer(0.01, slow_tick, name="slow")
    timer.start()
    await asyncio.sleep(0.015)
    timer.stop()
    assert not timer.active
    assert timer.inflight >= 1

    await timer.wait_idle()
    assert finished
    assert timer.inflight == 0


@pytest.mark.asyncio
async def test_failing_tick_does_not_stop_timer() -> None:
    calls = {"count": 0}

    async def flaky() -> None:
        calls["count"] += 1
        raise RuntimeError("tick blew up")

    timer = PeriodicTimer(0.01, flaky, name="flaky")
    timer.start()
    await asyncio.sleep(0.06)
    timer.stop()
    await timer.wait_idle()
    assert calls["count"] >= 2


def test_interval_must_be_positive() -> None:
    with pytest.raises(ValueError):
        PeriodicTimer(0, lambda: asyncio.sleep(0))


def test_pending_queue_is_fifo() -> None:
    queue = PendingQueue()
    assert queue.pop() is None
    for item in ("a", "b", "c"):
        queue.push(item)  # type: ignore[arg-type]
    assert len(queue) == 3
    assert queue.pop() == "a"
    assert queue.snapshot() == ["b", "c"]
    queue.clear()
    assert not queue


@pytest.mark.asyncio
async def test_stalled_loop_does_not_burst_ticks() -> None:
    loop = asyncio.get_running_loop()
    started: list[float] = []

    async def tick() -> None:
        started.append(loop.time())
        if len(started) == 1:
            time.sleep(0.1)  # block the loop for several intervals

    timer = PeriodicTimer(0.02, tick, name="stall")
    timer.start()
    await wait_until(lambda: len(started) >= 4)
    timer.stop()
    await timer.wait_idle()

    gaps = [later - earlier for earlier, later in zip(started[1:], started[2:])]
    assert min(gaps) >= 0.01


@pytest.mark.asyncio
async def test_restart_with_new_interval() -> None:
    calls = {"count": 0}

    async def tick() -> None:
        calls["count"] += 1

    timer = PeriodicTimer(10.0, tick, name="restart")
    timer.start()
    timer.stop()
    timer.start(0.01)
    assert timer.interval == 0.01
    await wait_until(lambda: calls["count"] >= 2)
    timer.stop()


async def wait_until(predicate, timeout: float = 2.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)
