"""Cached network reachability, refreshed on a timer."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

import httpx

from . import metrics
from .timers import PeriodicTimer

logger = logging.getLogger("logship.connectivity")

Probe = Callable[[], Awaitable[bool]]


class HttpReachabilityProbe:
    """Treats any HTTP response from ``url`` as "reachable"."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 2.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._url = url
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._calls = 0
        self._idle = asyncio.Event()
        self._idle.set()

    async def __call__(self) -> bool:
        self._calls += 1
        self._idle.clear()
        try:
            await self._client.head(self._url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.debug("Reachability probe failed url=%s error=%s", self._url, exc)
            return False
        finally:
            self._calls -= 1
            if not self._calls:
                self._idle.set()
        return True

    @property
    def closed(self) -> bool:
        return self._client.is_closed

    async def close(self) -> None:
        """Close the client once calls already in progress have returned."""
        await self._idle.wait()
        await self._client.aclose()


class ConnectivityMonitor:
    """Keeps the latest probe result so readers never wait on the network."""

    def __init__(self, probe: Probe, *, initial: bool = True) -> None:
        self._probe = probe
        self._connected = initial
        self._timer: Optional[PeriodicTimer] = None

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def active(self) -> bool:
        return self._timer is not None and self._timer.active

    async def refresh(self) -> bool:
        try:
            result = bool(await self._probe())
        except Exception:  # probe is an external collaborator; failures mean offline
            logger.warning("Connectivity probe raised; treating as offline", exc_info=True)
            result = False
        if result != self._connected:
            logger.info("Connectivity changed connected=%s", result)
        self._connected = result
        metrics.CONNECTIVITY.set(1 if result else 0)
        return result

    def start(self, interval: float) -> None:
        # One timer for the object's lifetime so wait_idle() sees every tick.
        if self._timer is None:
            self._timer = PeriodicTimer(interval, self.refresh, name="connectivity")
        self._timer.stop()
        self._timer.start(interval)

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.stop()

    async def wait_idle(self) -> None:
        if self._timer is not None:
            await self._timer.wait_idle()


__all__ = ["ConnectivityMonitor", "HttpReachabilityProbe", "Probe"]
