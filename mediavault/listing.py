"""
Reconstruct a folder view from the flat list of keys under a prefix.

The store has no directories. A folder shows up in two ways:
 - explicitly, as a zero-byte marker object whose key ends in a slash (created by "new folder"), or
 - implicitly, because there are objects with keys below it.
Depending on how the store is listed, implicit folders are either visible as nested keys
(recursive listing) or reported separately as excluded subpaths (listing with a delimiter).
"""

import re
import unicodedata
from typing import Iterable

from mediavault.models import StorageItem
from mediavault.objectstorage.store import ListedObject

_DIGITS = re.compile(r"(\d+)")


def natural_sort_key(name: str) -> tuple:
    """Sort key that compares runs of digits as numbers (file2 < file10) and ignores case"""
    parts = []
    for i, part in enumerate(_DIGITS.split(unicodedata.normalize("NFKC", name))):
        if i % 2:
            parts.append((0, int(part), ""))
        elif part:
            parts.append((1, 0, part.casefold()))
    return tuple(parts), name


def sort_storage_items(items: Iterable[StorageItem]) -> list[StorageItem]:
    """Folders first, then files, each in natural order"""
    return sorted(items, key=lambda item: (0 if item.is_folder else 1, natural_sort_key(item.name)))


def parse_storage_items(
    objects: Iterable[ListedObject], base_path: str, excluded_subpaths: Iterable[str] = ()
) -> list[StorageItem]:
    """
    Turn the objects listed under base_path (recursively or not) into the direct children of base_path.
    Nested objects collapse into a single folder entry; the marker object of base_path itself is dropped.
    """
    files: dict[str, StorageItem] = {}
    explicit_folders: dict[str, StorageItem] = {}
    implicit_folders: dict[str, StorageItem] = {}

    for obj in objects:
        key = obj["key"]
        if key == base_path or not key.startswith(base_path):
            continue
        relative = key[len(base_path) :]
        parts = [part for part in relative.split("/") if part]
        if not parts:
            continue
        if len(parts) > 1 or key.endswith("/"):
            folder_key = f"{base_path}{parts[0]}/"
            if key == folder_key:
                explicit_folders[folder_key] = StorageItem(
                    key=folder_key,
                    name=parts[0],
                    type="folder",
                    size=obj.get("size"),
                    last_modified=obj.get("last_modified"),
                )
            elif folder_key not in implicit_folders:
                implicit_folders[folder_key] = StorageItem(key=folder_key, name=parts[0], type="folder")
        else:
            files[key] = StorageItem(
                key=key,
                name=relative,
                type="file",
                size=obj.get("size"),
                last_modified=obj.get("last_modified"),
                content_type=obj.get("content_type"),
            )

    implicit_folders.update((f.key, f) for f in parse_excluded_subpaths(excluded_subpaths, base_path))
    folders = merge_folders(explicit_folders.values(), implicit_folders.values())
    return sort_storage_items([*folders, *files.values()])


def parse_excluded_subpaths(excluded_subpaths: Iterable[str], base_path: str) -> list[StorageItem]:
    """Folder items for the subpaths a non-recursive listing reported instead of listing their contents"""
    result = []
    for subpath in excluded_subpaths:
        if not subpath.startswith(base_path) or subpath == base_path:
            continue
        name = subpath[len(base_path) :].strip("/").split("/")[0]
        result.append(StorageItem(key=f"{base_path}{name}/", name=name, type="folder"))
    return result


def merge_folders(explicit: Iterable[StorageItem], implicit: Iterable[StorageItem]) -> list[StorageItem]:
    """Merge both kinds of folders by key. If a folder is known both ways, the marker object wins."""
    folders = {folder.key: folder for folder in explicit}
    for folder in implicit:
        folders.setdefault(folder.key, folder)
    return list(folders.values())
