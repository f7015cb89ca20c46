"""Directory-backed backlog: one file per undelivered event."""

from __future__ import annotations

import asyncio
import logging
import os
import secrets
from pathlib import Path
from typing import Callable, List, Union

from pydantic import ValidationError

from .errors import TransientPersistenceError, UnexpectedBacklogEntryError
from .models import Event

logger = logging.getLogger("logship.backlog")

LOG_EXTENSION = ".ehl"  # entry hardware log
_PARTIAL_SUFFIX = ".tmp"


def random_file_id() -> str:
    return secrets.token_hex(20)


class BacklogStore:
    """Persists events while the collector is unreachable.

    Blocking filesystem calls are pushed to a worker thread so the event
    loop keeps ticking. Files are written under a temporary name and renamed
    into place, so enumeration only ever sees complete records.
    """

    def __init__(self, directory: Union[str, Path], *, id_factory: Callable[[], str] = random_file_id) -> None:
        self._directory = Path(directory)
        self._id_factory = id_factory

    @property
    def directory(self) -> Path:
        return self._directory

    @staticmethod
    def is_backlog_file(name: str) -> bool:
        return os.path.splitext(name)[1].lower() == LOG_EXTENSION

    async def ensure(self) -> None:
        try:
            await asyncio.to_thread(self._directory.mkdir, parents=True, exist_ok=True)
        except OSError as exc:
            raise TransientPersistenceError(f"cannot create backlog directory {self._directory}: {exc}") from exc

    async def list(self) -> List[str]:
        try:
            names = await asyncio.to_thread(self._scan)
        except OSError as exc:
            raise TransientPersistenceError(f"cannot enumerate backlog directory {self._directory}: {exc}") from exc
        return sorted(names)

    async def read(self, name: str) -> Event:
        path = self._directory / name
        try:
            raw = await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise TransientPersistenceError(f"cannot read backlog file {name}: {exc}") from exc
        try:
            return Event.from_json(raw)
        except ValidationError as exc:
            raise UnexpectedBacklogEntryError(f"backlog file {name} is not a valid event: {exc}") from exc

    async def write(self, event: Event) -> Path:
        name = f"{self._id_factory()}{LOG_EXTENSION}"
        target = self._directory / name
        payload = event.to_json()
        try:
            await asyncio.to_thread(self._write_atomic, target, payload)
        except OSError as exc:
            raise TransientPersistenceError(f"cannot write backlog file {name}: {exc}") from exc
        logger.debug("Persisted event action=%s file=%s", event.action, name)
        return target

    async def delete(self, name: str) -> None:
        path = self._directory / name
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as exc:
            raise TransientPersistenceError(f"cannot delete backlog file {name}: {exc}") from exc

    def _scan(self) -> List[str]:
        with os.scandir(self._directory) as entries:
            return [
                entry.name
                for entry in entries
                if self.is_backlog_file(entry.name) and entry.is_file(follow_symlinks=False)
            ]

    def _write_atomic(self, target: Path, payload: str) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        partial = target.with_name(target.name + _PARTIAL_SUFFIX)
        with partial.open("w", encoding="utf-8") as handle:
            handle.write(payload)
        os.replace(partial, target)


__all__ = ["BacklogStore", "LOG_EXTENSION", "random_file_id"]
