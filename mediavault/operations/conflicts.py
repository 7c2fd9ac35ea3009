"""
Checks that run before anything is copied. If any of them fails, nothing is changed.
"""

import logging
from typing import Sequence

from mediavault.models import MoveTriple
from mediavault.objectstorage.store import ObjectStore
from mediavault.operations.collector import list_subtree


class DuplicateDestination(ValueError):
    def __init__(self, duplicates: list[str]):
        super().__init__(f"{len(duplicates)} item(s) with the same name already exist at the destination")
        self.duplicates = duplicates


class SubtreeTooLarge(ValueError):
    def __init__(self, count: int, limit: int):
        super().__init__(f"The folder contains too many files ({count}); only folders with up to {limit} files can be renamed")
        self.count = count
        self.limit = limit


def find_duplicates(triples: Sequence[MoveTriple], existing_keys: set[str]) -> list[str]:
    """Relative names of the triples whose destination key already exists, folder markers included"""
    return [t.relative_name for t in triples if t.dest_path in existing_keys]


async def raise_if_duplicates(store: ObjectStore, triples: Sequence[MoveTriple], dest_prefix: str) -> None:
    """Raise DuplicateDestination listing every relative name whose destination key already exists below dest_prefix"""
    if not triples:
        return
    existing = set(await list_subtree(store, dest_prefix))
    if duplicates := find_duplicates(triples, existing):
        logging.info(f"Aborting operation on {len(triples)} object(s): {len(duplicates)} already exist below {dest_prefix}")
        raise DuplicateDestination(duplicates)


def raise_if_too_many(triples: Sequence[MoveTriple], limit: int) -> None:
    if len(triples) > limit:
        logging.info(f"Refusing operation on {len(triples)} objects, the limit is {limit}")
        raise SubtreeTooLarge(len(triples), limit)
