import pytest

from mediavault.operations.collector import collect_delete_keys, collect_move_triples, collect_subtree_triples
from tests.tools import BASE, MemoryObjectStore, file_item, folder_item

pytestmark = pytest.mark.anyio


async def test_subtree_triples(store: MemoryObjectStore):
    store.populate("album/", "album/1.jpg", "album/raw/2.cr2", "album-2/x.jpg")
    triples = await collect_subtree_triples(store, f"{BASE}album", f"{BASE}trip")
    assert {(t.source_path, t.dest_path, t.relative_name) for t in triples} == {
        (f"{BASE}album/", f"{BASE}trip/", ""),
        (f"{BASE}album/1.jpg", f"{BASE}trip/1.jpg", "1.jpg"),
        (f"{BASE}album/raw/2.cr2", f"{BASE}trip/raw/2.cr2", "raw/2.cr2"),
    }


async def test_move_triples(store: MemoryObjectStore):
    store.populate("a.jpg", "album/1.jpg", "album/2.jpg")
    triples = await collect_move_triples(store, [file_item("a.jpg"), folder_item("album")], f"{BASE}dest")
    assert [(t.dest_path, t.relative_name) for t in triples] == [
        (f"{BASE}dest/a.jpg", "a.jpg"),
        (f"{BASE}dest/album/1.jpg", "album/1.jpg"),
        (f"{BASE}dest/album/2.jpg", "album/2.jpg"),
    ]


async def test_move_empty_folder(store: MemoryObjectStore):
    store.populate("empty/")
    triples = await collect_move_triples(store, [folder_item("empty")], f"{BASE}dest/")
    assert [(t.source_path, t.dest_path) for t in triples] == [(f"{BASE}empty/", f"{BASE}dest/empty/")]


async def test_delete_keys(store: MemoryObjectStore):
    store.populate("a.jpg", "album/", "album/1.jpg", "album/sub/2.jpg")
    keys = await collect_delete_keys(store, [folder_item("album"), file_item("a.jpg"), file_item("a.jpg")])
    assert keys == [f"{BASE}album/", f"{BASE}album/1.jpg", f"{BASE}album/sub/2.jpg", f"{BASE}a.jpg"]


async def test_delete_keys_implicit_folder(store: MemoryObjectStore):
    """A folder without marker object still has its key removed, which is a no-op"""
    store.populate("album/1.jpg")
    keys = await collect_delete_keys(store, [folder_item("album")])
    assert keys == [f"{BASE}album/1.jpg", f"{BASE}album/"]
