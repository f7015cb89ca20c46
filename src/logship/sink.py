"""Async client for the remote collector endpoint."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from .errors import TransientDeliveryError
from .models import Event

logger = logging.getLogger("logship.sink")


class CollectorSink:
    def __init__(
        self,
        server_url: str,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._server_url = server_url
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @property
    def server_url(self) -> str:
        return self._server_url

    @property
    def closed(self) -> bool:
        return self._client.is_closed

    async def send(self, event: Event) -> None:
        try:
            response = await self._client.get(self._server_url, params=event.query_params())
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Collector rejected event action=%s status=%s", event.action, exc.response.status_code
            )
            raise TransientDeliveryError(f"collector returned {exc.response.status_code}") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Collector request failed action=%s error=%s", event.action, exc)
            raise TransientDeliveryError(str(exc) or exc.__class__.__name__) from exc

    async def close(self) -> None:
        await self._client.aclose()


__all__ = ["CollectorSink"]
