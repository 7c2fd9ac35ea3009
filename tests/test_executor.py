import asyncio

import pytest

from mediavault.models import MoveTriple, OperationProgress
from mediavault.operations.executor import ProgressChannel, copy_batch, remove_keys
from tests.tools import BASE, MemoryObjectStore

pytestmark = pytest.mark.anyio


def triples_for(*names: str) -> list[MoveTriple]:
    return [MoveTriple(source_path=f"{BASE}{n}", dest_path=f"{BASE}dest/{n}", relative_name=n) for n in names]


async def test_copy_batch_moves_in_order(store: MemoryObjectStore):
    store.populate("a.jpg", "b.jpg")
    progress: list[OperationProgress] = []
    result = await copy_batch(store, triples_for("a.jpg", "b.jpg"), on_progress=progress.append)
    assert result.success
    assert (result.succeeded, result.failed, result.error, result.warning) == (2, 0, None, None)
    assert store.keys() == {"dest/a.jpg", "dest/b.jpg"}
    assert [call[0] for call in store.calls] == ["copy", "remove", "copy", "remove"]
    assert progress == [OperationProgress(current=1, total=2), OperationProgress(current=2, total=2)]


async def test_copy_batch_without_remove(store: MemoryObjectStore):
    store.populate("a.jpg")
    result = await copy_batch(store, triples_for("a.jpg"), remove_source=False)
    assert result.success
    assert store.keys() == {"a.jpg", "dest/a.jpg"}


async def test_copy_failure_continues(store: MemoryObjectStore):
    store.populate("a.jpg", "b.jpg", "c.jpg")
    store.fail_copy.add(f"{BASE}b.jpg")
    progress: list[OperationProgress] = []
    result = await copy_batch(store, triples_for("a.jpg", "b.jpg", "c.jpg"), on_progress=progress.append)
    assert not result.success
    assert (result.succeeded, result.failed, result.failed_items) == (2, 1, ["b.jpg"])
    assert result.error is not None
    assert store.keys() == {"b.jpg", "dest/a.jpg", "dest/c.jpg"}
    assert [p.current for p in progress] == [1, 2, 3]


async def test_remove_failure_is_warning(store: MemoryObjectStore):
    store.populate("a.jpg")
    store.fail_remove.add(f"{BASE}a.jpg")
    result = await copy_batch(store, triples_for("a.jpg"))
    assert result.success
    assert result.succeeded == 1
    assert result.error is None
    assert result.warning is not None and "a.jpg" in result.warning
    assert store.keys() == {"a.jpg", "dest/a.jpg"}


async def test_empty_batch(store: MemoryObjectStore):
    result = await copy_batch(store, [])
    assert result.success
    assert result.succeeded == 0
    assert store.calls == []


async def test_progress_channel(store: MemoryObjectStore):
    store.populate("a.jpg", "b.jpg", "c.jpg")
    channel = ProgressChannel()
    task = asyncio.create_task(copy_batch(store, triples_for("a.jpg", "b.jpg", "c.jpg"), on_progress=channel))
    received = [(p.current, p.total) async for p in channel]
    result = await task
    assert received == [(1, 3), (2, 3), (3, 3)]
    assert result.succeeded == 3
    assert channel.closed


async def test_progress_channel_closed_by_consumer(store: MemoryObjectStore):
    store.populate("a.jpg", "b.jpg")
    channel = ProgressChannel()
    channel.close()
    result = await copy_batch(store, triples_for("a.jpg", "b.jpg"), on_progress=channel)
    assert result.succeeded == 2
    assert [p async for p in channel] == []


async def test_remove_keys(store: MemoryObjectStore):
    store.populate("a.jpg", "b.jpg", "c.jpg")
    store.fail_remove.add(f"{BASE}b.jpg")
    keys = [f"{BASE}a.jpg", f"{BASE}b.jpg", f"{BASE}c.jpg"]
    result = await remove_keys(store, keys, concurrency=2)
    assert result.succeeded == [f"{BASE}a.jpg", f"{BASE}c.jpg"]
    assert [f.key for f in result.failed] == [f"{BASE}b.jpg"]
    assert "Simulated" in result.failed[0].error
    assert store.keys() == {"b.jpg"}
