import pytest
from httpx import AsyncClient

from tests.tools import BASE, SCOPE, MemoryObjectStore, file_item, folder_item, get_json, post_json

pytestmark = pytest.mark.anyio

URL = f"/scope/{SCOPE}"


async def test_list_items(client: AsyncClient, store: MemoryObjectStore):
    store.populate("a.jpg", "photos/", "photos/1.jpg", "docs/x.txt")
    items = await get_json(client, f"{URL}/items")
    assert [(i["name"], i["type"]) for i in items] == [("docs", "folder"), ("photos", "folder"), ("a.jpg", "file")]
    assert items[2]["key"] == f"{BASE}a.jpg"
    assert items[2]["size"] == 4
    assert [i["category"] for i in items] == ["folder", "folder", "image"]

    items = await get_json(client, f"{URL}/items", params={"path": "photos"})
    assert [i["name"] for i in items] == ["1.jpg"]

    folders = await get_json(client, f"{URL}/folders")
    assert [i["name"] for i in folders] == ["docs", "photos"]


async def test_create_folder(client: AsyncClient, store: MemoryObjectStore):
    res = await post_json(client, f"{URL}/folders", expected=201, json={"path": "photos", "name": "2024"})
    assert res == {"key": f"{BASE}photos/2024/"}
    assert f"{BASE}photos/2024/" in store.objects
    await post_json(client, f"{URL}/folders", expected=400, json={"name": "a/b"})
    await post_json(client, f"{URL}/folders", expected=422, json={"path": "photos"})


async def test_upload(client: AsyncClient, store: MemoryObjectStore):
    store.populate("a.jpg")
    files = {"file": ("a.jpg", b"bytes", "image/jpeg")}
    res = await post_json(client, f"{URL}/upload", expected=201, files=files)
    assert res == {"key": f"{BASE}a (1).jpg"}
    assert store.objects[f"{BASE}a (1).jpg"] == b"bytes"


async def test_move(client: AsyncClient, store: MemoryObjectStore):
    store.populate("a.jpg", "album/1.jpg", "dest/")
    body = {
        "path": "",
        "items": [file_item("a.jpg").model_dump(mode="json"), folder_item("album").model_dump(mode="json")],
        "destination": "dest",
    }
    res = await post_json(client, f"{URL}/move", json=body)
    assert res["success"] is True
    assert res["succeeded"] == 2
    assert "duplicates" not in res
    assert store.keys() == {"dest/", "dest/a.jpg", "dest/album/1.jpg"}


async def test_move_duplicates(client: AsyncClient, store: MemoryObjectStore):
    store.populate("a.jpg", "dest/a.jpg")
    body = {"items": [file_item("a.jpg").model_dump(mode="json")], "destination": "dest"}
    res = await post_json(client, f"{URL}/move", json=body)
    assert res["success"] is False
    assert res["duplicates"] == ["a.jpg"]
    assert store.copies() == []


async def test_rename(client: AsyncClient, store: MemoryObjectStore):
    store.populate("a.jpg", "album/1.jpg")
    res = await post_json(
        client, f"{URL}/rename", json={"item": file_item("a.jpg").model_dump(mode="json"), "new_name": "b.jpg"}
    )
    assert res == {"success": True, "error": None, "warning": None}

    res = await post_json(
        client, f"{URL}/rename", json={"item": folder_item("album").model_dump(mode="json"), "new_name": "trip"}
    )
    assert res["success"] is True
    assert res["failed_files"] == []
    assert store.keys() == {"b.jpg", "trip/1.jpg"}

    res = await post_json(
        client, f"{URL}/rename", json={"item": file_item("b.jpg").model_dump(mode="json"), "new_name": "x/y"}
    )
    assert res["success"] is False
    assert "slashes" in res["error"]


async def test_delete(client: AsyncClient, store: MemoryObjectStore):
    store.populate("a.jpg", "album/1.jpg", "keep.jpg")
    body = {"items": [file_item("a.jpg").model_dump(mode="json"), folder_item("album").model_dump(mode="json")]}
    res = await post_json(client, f"{URL}/delete", json=body)
    assert set(res["succeeded"]) == {f"{BASE}a.jpg", f"{BASE}album/1.jpg", f"{BASE}album/"}
    assert res["failed"] == []
    assert store.keys() == {"keep.jpg"}


async def test_refresh(client: AsyncClient, store: MemoryObjectStore):
    store.populate("a.jpg")
    await get_json(client, f"{URL}/items")
    store.populate("b.jpg")
    assert len(await get_json(client, f"{URL}/items")) == 1
    await post_json(client, f"{URL}/refresh", expected=204)
    assert len(await get_json(client, f"{URL}/items")) == 2


async def test_presigned_and_thumbnail(client: AsyncClient):
    res = await get_json(client, f"{URL}/presigned", params={"key": f"{BASE}a.jpg"})
    assert res["url"].startswith(f"https://store.test/{BASE}a.jpg")
    res = await get_json(client, f"{URL}/thumbnail", params={"key": f"{BASE}a.jpg"})
    assert f"thumbnails/{SCOPE}/a.jpg.thumb.jpg" in res["url"]
    res = await get_json(client, f"{URL}/thumbnail", params={"key": f"{BASE}a.txt"})
    assert res == {"url": None}
    await get_json(client, f"{URL}/presigned", expected=400, params={"key": "media/someone-else/a.jpg"})


async def test_move_into_same_folder(client: AsyncClient, store: MemoryObjectStore):
    store.populate("photos/a.jpg")
    body = {"path": "photos", "items": [file_item("photos/a.jpg").model_dump(mode="json")], "destination": "photos"}
    await post_json(client, f"{URL}/move", expected=400, json=body)
    assert store.copies() == []


async def test_delete_selection(client: AsyncClient, store: MemoryObjectStore):
    store.populate("photos/a.jpg", "photos/b.jpg")
    body = {"path": "photos", "selection": [f"{BASE}photos/a.jpg"]}
    res = await post_json(client, f"{URL}/delete", json=body)
    assert res["succeeded"] == [f"{BASE}photos/a.jpg"]
    assert store.keys() == {"photos/b.jpg"}
    body = {"path": "photos", "selection": [f"{BASE}photos/gone.jpg"]}
    await post_json(client, f"{URL}/delete", expected=404, json=body)
