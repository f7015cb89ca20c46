from __future__ import annotations

import re
from pathlib import Path

import pytest

from logship.backlog import LOG_EXTENSION, BacklogStore
from logship.errors import TransientPersistenceError, UnexpectedBacklogEntryError
from logship.models import Event


@pytest.mark.asyncio
async def test_write_then_read(tmp_path: Path) -> None:
    store = BacklogStore(tmp_path / "backlog")
    event = Event.create("click", {"id": "7"})

    path = await store.write(event)

    assert path.parent == tmp_path / "backlog"
    assert re.fullmatch(r"[0-9a-f]{40}\.ehl", path.name)
    assert await store.list() == [path.name]
    assert await store.read(path.name) == event


@pytest.mark.asyncio
async def test_list_filters_by_extension(tmp_path: Path) -> None:
    (tmp_path / "a.ehl").write_text("{}")
    (tmp_path / "B.EHL").write_text("{}")
    (tmp_path / "notes.txt").write_text("keep me")
    (tmp_path / "c.ehl.tmp").write_text("{}")

    store = BacklogStore(tmp_path)
    assert await store.list() == ["B.EHL", "a.ehl"]


@pytest.mark.asyncio
async def test_unique_names(tmp_path: Path) -> None:
    store = BacklogStore(tmp_path)
    paths = {await store.write(Event.create("tick")) for _ in range(5)}
    assert len(paths) == 5
    assert not list(tmp_path.glob("*.tmp"))


@pytest.mark.asyncio
async def test_corrupt_file_raises_unexpected_entry(tmp_path: Path) -> None:
    (tmp_path / f"broken{LOG_EXTENSION}").write_text("{not json")
    (tmp_path / f"empty{LOG_EXTENSION}").write_text('{"action": ""}')
    store = BacklogStore(tmp_path)

    for name in await store.list():
        with pytest.raises(UnexpectedBacklogEntryError):
            await store.read(name)


@pytest.mark.asyncio
async def test_missing_file_read_is_persistence_error(tmp_path: Path) -> None:
    store = BacklogStore(tmp_path)
    with pytest.raises(TransientPersistenceError) as excinfo:
        await store.read(f"gone{LOG_EXTENSION}")
    assert not isinstance(excinfo.value, UnexpectedBacklogEntryError)


@pytest.mark.asyncio
async def test_delete_tolerates_missing_file(tmp_path: Path) -> None:
    store = BacklogStore(tmp_path)
    path = await store.write(Event.create("click"))
    await store.delete(path.name)
    await store.delete(path.name)
    assert not path.exists()


@pytest.mark.asyncio
async def test_io_failures_are_wrapped(tmp_path: Path) -> None:
    blocker = tmp_path / "occupied"
    blocker.write_text("a file, not a directory")
    store = BacklogStore(blocker)

    with pytest.raises(TransientPersistenceError):
        await store.ensure()
    with pytest.raises(TransientPersistenceError):
        await store.list()
    with pytest.raises(TransientPersistenceError):
        await store.write(Event.create("click"))


@pytest.mark.asyncio
async def test_ensure_creates_nested_directory(tmp_path: Path) -> None:
    store = BacklogStore(tmp_path / "a" / "b")
    await store.ensure()
    assert store.directory.is_dir()
    assert await store.list() == []


@pytest.mark.asyncio
async def test_list_skips_directories(tmp_path: Path) -> None:
    (tmp_path / f"nested{LOG_EXTENSION}").mkdir()
    (tmp_path / f"real{LOG_EXTENSION}").write_text("{}")

    store = BacklogStore(tmp_path)
    assert await store.list() == [f"real{LOG_EXTENSION}"]
