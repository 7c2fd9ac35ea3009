"""
Expand the items a user selected into the individual objects an operation has to touch.

A folder is nothing but the objects below its prefix, so moving or renaming it means
copying every one of those objects to the same relative position below a new prefix.
"""

from typing import Iterable

from mediavault.models import MoveTriple, StorageItem
from mediavault.objectstorage.store import ObjectStore
from mediavault.paths import normalize_trailing_slash


async def list_subtree(store: ObjectStore, prefix: str) -> list[str]:
    """All keys below prefix, at any depth, including a marker object for the prefix itself"""
    result = await store.list(prefix, recursive=True)
    return [obj["key"] for obj in result["items"]]


async def collect_subtree_triples(
    store: ObjectStore, source_prefix: str, dest_prefix: str, name_prefix: str = ""
) -> list[MoveTriple]:
    """
    Map every object below source_prefix to the same relative key below dest_prefix.
    The relative name reported to the user is the key relative to source_prefix, prefixed by name_prefix.
    """
    source_prefix = normalize_trailing_slash(source_prefix)
    dest_prefix = normalize_trailing_slash(dest_prefix)
    triples = []
    for source_path in await list_subtree(store, source_prefix):
        relative = source_path[len(source_prefix) :]
        triples.append(
            MoveTriple(
                source_path=source_path,
                dest_path=f"{dest_prefix}{relative}",
                relative_name=f"{name_prefix}{relative}",
            )
        )
    return triples


async def collect_move_triples(store: ObjectStore, items: Iterable[StorageItem], dest_prefix: str) -> list[MoveTriple]:
    """Triples for moving each item (file or whole folder) into the folder dest_prefix"""
    dest_prefix = normalize_trailing_slash(dest_prefix)
    triples: list[MoveTriple] = []
    for item in items:
        if item.is_folder:
            triples += await collect_subtree_triples(
                store, item.key, f"{dest_prefix}{item.name}/", name_prefix=f"{item.name}/"
            )
        else:
            triples.append(MoveTriple(source_path=item.key, dest_path=f"{dest_prefix}{item.name}", relative_name=item.name))
    return triples


async def collect_delete_keys(store: ObjectStore, items: Iterable[StorageItem]) -> list[str]:
    """Every key to remove for these items, without duplicates: folders contribute their subtree and marker"""
    keys: dict[str, None] = {}
    for item in items:
        if item.is_folder:
            for key in await list_subtree(store, normalize_trailing_slash(item.key)):
                keys[key] = None
        keys[item.key] = None
    return list(keys)
