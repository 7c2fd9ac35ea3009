"""
File manager operations on the media of a scope: listing, move, rename, delete, new folder and upload.

Every operation takes the SessionContext it runs in. After an operation has changed the
store, the cached listings it affected are invalidated; a caller showing one of those
folders should list it again.
"""

import logging
from typing import Sequence

from mediavault.cache import CacheKey, ListingCache
from mediavault.config import Settings, get_settings
from mediavault.listing import parse_storage_items
from mediavault.models import (
    BatchOperationResult,
    DeleteResult,
    RenameFileResult,
    RenameFolderResult,
    SessionContext,
    StorageItem,
)
from mediavault.naming import InvalidItemName, generate_unique_filename, validate_item_name, validate_rename
from mediavault.objectstorage.store import ObjectNotFound, ObjectStore
from mediavault.operations.collector import collect_delete_keys, collect_move_triples, collect_subtree_triples
from mediavault.operations.conflicts import DuplicateDestination, SubtreeTooLarge, raise_if_duplicates, raise_if_too_many
from mediavault.operations.executor import ProgressCallback, ProgressChannel, copy_batch, remove_keys
from mediavault.paths import (
    build_base_path,
    build_renamed_key,
    build_renamed_prefix,
    extract_relative_path,
    get_parent_path,
    is_full_storage_path,
    is_thumbnail_target,
    normalize_trailing_slash,
    thumbnail_key,
)


class StorageOperations:
    def __init__(
        self, store: ObjectStore, cache: ListingCache[list[StorageItem]] | None = None, settings: Settings | None = None
    ):
        self.store = store
        self.cache: ListingCache[list[StorageItem]] = cache if cache is not None else ListingCache()
        self.settings = settings or get_settings()

    ##### Paths #####

    def base_path(self, scope: str, relative_path: str | None = None) -> str:
        return build_base_path(scope, relative_path, media_prefix=self.settings.media_prefix)

    def relative_path(self, full_path: str, scope: str) -> str | None:
        return extract_relative_path(full_path, scope, media_prefix=self.settings.media_prefix)

    def _check_in_scope(self, context: SessionContext, *keys: str) -> None:
        for key in keys:
            if self.relative_path(key, context.scope) is None:
                raise ValueError(f"{key!r} is not part of the media of {context.scope}")

    def _destination_prefix(self, context: SessionContext, destination_path: str) -> str:
        """Destinations can be given as a full key prefix or relative to the scope root"""
        if is_full_storage_path(destination_path, context.scope, media_prefix=self.settings.media_prefix):
            return normalize_trailing_slash(destination_path)
        return self.base_path(context.scope, destination_path.strip("/"))

    ##### Listing #####

    async def list_items(self, context: SessionContext, path: str | None = None) -> list[StorageItem]:
        """The files and folders directly inside path (default: the current path), folders first"""
        path = (context.current_path if path is None else path).strip("/")
        base_path = self.base_path(context.scope, path)

        async def fetch() -> list[StorageItem]:
            result = await self.store.list(base_path, recursive=False)
            return parse_storage_items(result["items"], base_path, result["excluded_subpaths"])

        return await self.cache.get_or_fetch(CacheKey(context.scope, path), fetch)

    async def list_folders(self, context: SessionContext, path: str | None = None) -> list[StorageItem]:
        return [item for item in await self.list_items(context, path) if item.is_folder]

    async def selected_items(self, context: SessionContext) -> list[StorageItem]:
        """The items of the current folder whose keys are in the selection of the session, in listing order"""
        items = [item for item in await self.list_items(context) if item.key in context.selection]
        if missing := context.selection - {item.key for item in items}:
            raise ObjectNotFound(f"Selected item(s) not found in the current folder: {', '.join(sorted(missing))}")
        return items

    def refresh(self, context: SessionContext) -> None:
        self.cache.invalidate_path(context.scope, context.current_path)

    def _invalidate_after_change(self, context: SessionContext, *paths: str, subtrees: Sequence[str] = ()) -> None:
        self.cache.invalidate_path(context.scope, context.current_path)
        for path in paths:
            self.cache.invalidate_path(context.scope, path)
        for path in subtrees:
            self.cache.invalidate_with_descendants(context.scope, path)

    ##### Move #####

    async def move_items(
        self,
        context: SessionContext,
        items: Sequence[StorageItem] | None,
        destination_path: str,
        on_progress: ProgressCallback | None = None,
    ) -> BatchOperationResult:
        """
        Move files and folders into the folder destination_path.
        If items is None, the selection of the session is moved.
        If any object would overwrite an existing object at the destination, nothing is moved.
        """
        try:
            if items is None:
                items = await self.selected_items(context)
            self._check_in_scope(context, *(item.key for item in items))
            dest_prefix = self._destination_prefix(context, destination_path)
            for item in items:
                if item.is_folder and dest_prefix.startswith(normalize_trailing_slash(item.key)):
                    raise ValueError(f"Cannot move folder {item.name!r} into itself")
                if get_parent_path(item.key) == dest_prefix:
                    raise ValueError(f"{item.name!r} is already in the destination folder")

            triples = await collect_move_triples(self.store, items, dest_prefix)
            try:
                await raise_if_duplicates(self.store, triples, dest_prefix)
            except DuplicateDestination as e:
                return BatchOperationResult(
                    success=False, succeeded=0, failed=len(triples), duplicates=e.duplicates, error=str(e)
                )

            result = await copy_batch(self.store, triples, remove_source=True, on_progress=on_progress)
        finally:
            _close(on_progress)

        sources = {self.relative_path(get_parent_path(item.key), context.scope) or "" for item in items}
        moved_folders = [self.relative_path(item.key, context.scope) or "" for item in items if item.is_folder]
        dest_relative = self.relative_path(dest_prefix, context.scope) or ""
        new_folders = [f"{dest_relative}/{item.name}".lstrip("/") for item in items if item.is_folder]
        self._invalidate_after_change(context, *sources, dest_relative, subtrees=[*moved_folders, *new_folders])
        return result

    ##### Rename #####

    async def rename_file(self, context: SessionContext, current_key: str, new_name: str) -> RenameFileResult:
        """Rename a single file within its folder. Store errors are reported in the result rather than raised."""
        self._check_in_scope(context, current_key)
        try:
            new_name = validate_item_name(new_name, max_length=self.settings.max_name_length)
        except InvalidItemName as e:
            return RenameFileResult(success=False, error=str(e))
        new_key = build_renamed_key(current_key, new_name)
        if new_key == current_key:
            return RenameFileResult(success=False, error="The name was not changed")

        try:
            existing = await self.store.list(new_key, recursive=True)
            if any(obj["key"] == new_key for obj in existing["items"]):
                return RenameFileResult(success=False, error=f"A file named {new_name!r} already exists")
            await self.store.copy(current_key, new_key)
        except Exception as e:
            logging.error(f"Could not rename {current_key} to {new_key}: {e!r}")
            return RenameFileResult(success=False, error=f"Could not rename file: {e}")

        result = RenameFileResult(success=True)
        try:
            await self.store.remove(current_key)
        except Exception as e:
            logging.warning(f"Renamed {current_key} to {new_key}, but could not remove the original: {e!r}")
            result.warning = f"The original file could not be removed: {e}"

        folder = self.relative_path(get_parent_path(current_key), context.scope) or ""
        self._invalidate_after_change(context, folder)
        return result

    async def rename_folder(
        self,
        context: SessionContext,
        current_prefix: str,
        new_name: str,
        on_progress: ProgressCallback | None = None,
    ) -> RenameFolderResult:
        """
        Rename a folder by copying everything below it to the new prefix.
        Folders with more than max_folder_rename_items objects are refused, and if any object
        would overwrite an existing one, nothing is copied.
        """
        current_prefix = normalize_trailing_slash(current_prefix)
        try:
            self._check_in_scope(context, current_prefix)
            try:
                new_name = validate_item_name(new_name, max_length=self.settings.max_name_length)
            except InvalidItemName as e:
                return RenameFolderResult(success=False, error=str(e))
            new_prefix = build_renamed_prefix(current_prefix, new_name)
            if new_prefix == current_prefix:
                return RenameFolderResult(success=False, error="The name was not changed")

            triples = await collect_subtree_triples(self.store, current_prefix, new_prefix)
            try:
                raise_if_too_many(triples, self.settings.max_folder_rename_items)
                await raise_if_duplicates(self.store, triples, new_prefix)
            except SubtreeTooLarge as e:
                return RenameFolderResult(success=False, error=str(e))
            except DuplicateDestination as e:
                return RenameFolderResult(
                    success=False, failed=len(triples), error=str(e), duplicates=e.duplicates
                )

            batch = await copy_batch(self.store, triples, remove_source=True, on_progress=on_progress)
        finally:
            _close(on_progress)

        result = RenameFolderResult(**batch.model_dump(), failed_files=batch.failed_items)
        old_path = self.relative_path(current_prefix, context.scope) or ""
        new_path = self.relative_path(new_prefix, context.scope) or ""
        parent = self.relative_path(get_parent_path(current_prefix), context.scope) or ""
        self._invalidate_after_change(context, parent, subtrees=[old_path, new_path])
        return result

    async def rename_item(
        self, context: SessionContext, item: StorageItem, new_name: str, on_progress: ProgressCallback | None = None
    ) -> RenameFileResult | RenameFolderResult:
        """
        Rename a file or folder shown in the current listing, checking the new name against its siblings first
        """
        parent = self.relative_path(get_parent_path(item.key), context.scope)
        siblings = await self.list_items(context, parent) if parent is not None else []
        try:
            new_name = validate_rename(new_name, item, siblings, max_length=self.settings.max_name_length)
        except InvalidItemName as e:
            _close(on_progress)
            if item.is_folder:
                return RenameFolderResult(success=False, error=str(e))
            return RenameFileResult(success=False, error=str(e))
        if item.is_folder:
            return await self.rename_folder(context, item.key, new_name, on_progress=on_progress)
        return await self.rename_file(context, item.key, new_name)

    ##### Delete #####

    async def remove_items(self, context: SessionContext, items: Sequence[StorageItem] | None = None) -> DeleteResult:
        """
        Remove files and folders (with everything in them), by default the selection of the session.
        Keys are removed concurrently and reported per key.
        """
        if items is None:
            items = await self.selected_items(context)
        self._check_in_scope(context, *(item.key for item in items))
        keys = await collect_delete_keys(self.store, items)
        result = await remove_keys(self.store, keys, concurrency=self.settings.delete_concurrency)

        removed_folders = [self.relative_path(item.key, context.scope) or "" for item in items if item.is_folder]
        parents = {self.relative_path(get_parent_path(item.key), context.scope) or "" for item in items}
        self._invalidate_after_change(context, *parents, subtrees=removed_folders)
        return result

    ##### Create #####

    async def create_folder(self, context: SessionContext, name: str) -> str:
        """Create an (empty) folder in the current path by writing its marker object. Returns the marker key."""
        name = validate_item_name(name, max_length=self.settings.max_name_length)
        key = f"{self.base_path(context.scope, context.current_path)}{name}/"
        await self.store.put(key, b"")
        self._invalidate_after_change(context)
        return key

    async def upload_file(
        self, context: SessionContext, filename: str, data: bytes, content_type: str | None = None
    ) -> str:
        """Store a file in the current path, adding a number to the name if it is already taken. Returns the key."""
        filename = validate_item_name(filename, max_length=self.settings.max_name_length)
        existing = [item.name for item in await self.list_items(context) if not item.is_folder]
        filename = generate_unique_filename(filename, existing, max_length=self.settings.max_name_length)
        key = f"{self.base_path(context.scope, context.current_path)}{filename}"
        await self.store.put(key, data, content_type=content_type)
        self._invalidate_after_change(context)
        return key

    ##### Preview #####

    async def presigned_url(self, context: SessionContext, key: str) -> str:
        self._check_in_scope(context, key)
        return await self.store.presigned_get(key, hours_valid=self.settings.presigned_get_hours_valid)

    async def thumbnail_url(self, context: SessionContext, key: str) -> str | None:
        """Url of the thumbnail of an image or video, or None for other files"""
        self._check_in_scope(context, key)
        if not is_thumbnail_target(key):
            return None
        thumb = thumbnail_key(
            key,
            media_prefix=self.settings.media_prefix,
            thumbnail_prefix=self.settings.thumbnail_prefix,
            suffix=self.settings.thumbnail_suffix,
        )
        return await self.store.presigned_get(thumb, hours_valid=self.settings.presigned_get_hours_valid)


def _close(on_progress: ProgressCallback | None) -> None:
    """End a progress channel for an operation that stopped before its batch started"""
    if isinstance(on_progress, ProgressChannel):
        on_progress.close()
