"""Public entry point: queue events and drive the delivery engine."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Mapping, Optional, Set, Union

import httpx
from pydantic import ValidationError

from . import metrics
from .backlog import BacklogStore, random_file_id
from .config import ShipperOptions
from .connectivity import ConnectivityMonitor, HttpReachabilityProbe, Probe
from .dispatch import DispatchLoop
from .errors import ConfigurationError
from .models import Event
from .queue import PendingQueue
from .sink import CollectorSink

logger = logging.getLogger("logship.logger")


class TelemetryLogger:
    """Store-and-forward telemetry logger.

    ``log()`` only queues an event. Two timers do the rest: one refreshes the
    cached connectivity flag, the other pops one event per tick and either
    sends it to the collector or writes it to the backlog directory. Events
    written while offline are reloaded into the queue on the first delivery
    after the network comes back.

    Until ``set_options()`` has been called ``log()`` silently ignores events,
    so producers never need to check whether telemetry is ready.
    """

    def __init__(
        self,
        *,
        probe: Optional[Probe] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        id_factory=random_file_id,
    ) -> None:
        self._options: Optional[ShipperOptions] = None
        self._queue = PendingQueue()
        self._probe_override = probe
        self._transport = transport
        self._id_factory = id_factory
        self._monitor = ConnectivityMonitor(self._probe)
        self._engine_options: Optional[ShipperOptions] = None
        self._dispatch: Optional[DispatchLoop] = None
        self._default_probe: Optional[HttpReachabilityProbe] = None
        self._retiring: Set[asyncio.Task[None]] = set()

    @property
    def options(self) -> Optional[ShipperOptions]:
        return self._options

    @property
    def connected(self) -> bool:
        return self._monitor.connected

    @property
    def pending(self) -> List[Event]:
        return self._queue.snapshot()

    @property
    def is_running(self) -> bool:
        return self._monitor.active or (self._dispatch is not None and self._dispatch.active)

    @property
    def monitor(self) -> ConnectivityMonitor:
        return self._monitor

    @property
    def dispatcher(self) -> Optional[DispatchLoop]:
        return self._dispatch

    def set_options(
        self, options: Union[ShipperOptions, Mapping[str, Any], None] = None, **fields: Any
    ) -> ShipperOptions:
        if isinstance(options, ShipperOptions):
            if fields:
                raise ConfigurationError("keyword fields cannot be combined with a ShipperOptions instance")
            resolved = options
        else:
            merged = dict(options or {})
            merged.update(fields)
            resolved = ShipperOptions.from_mapping(merged)
        self._options = resolved
        return resolved

    def log(self, action: str, attributes: Optional[Mapping[str, Any]] = None) -> None:
        if self._options is None:
            return
        try:
            event = Event.create(action, attributes)
        except ValidationError as exc:
            logger.warning("Ignoring invalid telemetry event action=%r: %s", action, exc)
            return
        self._queue.push(event)
        metrics.EVENTS_ENQUEUED.inc()

    def run(self) -> None:
        if self._options is None:
            raise ConfigurationError("options are not set; call set_options() first")
        asyncio.get_running_loop()

        if self.is_running:
            self.stop()

        dispatch = self._build_engine(self._options)
        self._monitor.start(self._options.network_check_seconds)
        dispatch.start(self._options.log_check_seconds)
        logger.info(
            "Telemetry logger started server_url=%s log_path=%s",
            self._options.server_url,
            self._options.log_path,
        )

    def stop(self) -> None:
        self._monitor.stop()
        if self._dispatch is not None:
            self._dispatch.stop()

    async def aclose(self) -> None:
        """Stop the timers, let running ticks finish and release HTTP clients."""
        self.stop()
        await self._monitor.wait_idle()
        if self._dispatch is not None:
            await self._dispatch.wait_idle()
        if self._retiring:
            await asyncio.gather(*list(self._retiring))
        if self._dispatch is not None and self._engine_options is not None:
            await self._dispatch.sink.close()
            if self._default_probe is not None:
                await self._default_probe.close()
        self._engine_options = None
        self._default_probe = None

    async def _probe(self) -> bool:
        if self._probe_override is not None:
            return await self._probe_override()
        if self._default_probe is None:
            return False
        return await self._default_probe()

    def _build_engine(self, options: ShipperOptions) -> DispatchLoop:
        # A running engine keeps the options it was started with; new options
        # take effect here, on the next run().
        if self._dispatch is not None and options == self._engine_options:
            return self._dispatch

        was_disconnected = True
        if self._dispatch is not None:
            was_disconnected = self._dispatch.was_disconnected
            # aclose() already released the clients of a closed engine.
            if self._engine_options is not None:
                self._retire(self._dispatch, self._default_probe)

        sink = CollectorSink(options.server_url, timeout=options.request_timeout, transport=self._transport)
        if self._probe_override is None:
            self._default_probe = HttpReachabilityProbe(options.effective_probe_url, transport=self._transport)

        dispatch = DispatchLoop(
            self._queue,
            self._monitor,
            sink,
            BacklogStore(options.log_path, id_factory=self._id_factory),
        )
        dispatch.was_disconnected = was_disconnected
        self._dispatch = dispatch
        self._engine_options = options
        return dispatch

    def _retire(self, dispatch: DispatchLoop, probe: Optional[HttpReachabilityProbe]) -> None:
        task = asyncio.ensure_future(self._close_engine(dispatch, probe))
        self._retiring.add(task)
        task.add_done_callback(self._retiring.discard)

    async def _close_engine(self, dispatch: DispatchLoop, probe: Optional[HttpReachabilityProbe]) -> None:
        await dispatch.wait_idle()
        await dispatch.sink.close()
        if probe is not None:
            await probe.close()
        logger.debug("Closed clients for superseded collector %s", dispatch.sink.server_url)


default_logger = TelemetryLogger()

__all__ = ["TelemetryLogger", "default_logger"]
