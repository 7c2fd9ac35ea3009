from abc import ABC, abstractmethod
from datetime import datetime

from typing_extensions import NotRequired, TypedDict


class ObjectNotFound(FileNotFoundError):
    pass


class ListedObject(TypedDict):
    key: str
    size: NotRequired[int | None]
    last_modified: NotRequired[datetime | None]
    content_type: NotRequired[str | None]


class ListResult(TypedDict):
    items: list[ListedObject]
    excluded_subpaths: list[str]


class ObjectStore(ABC):
    """
    The operations the file manager needs from a flat, key based object store.
    There are no folders, no rename and no transactions: everything else is built from these.
    """

    @abstractmethod
    async def list(self, prefix: str, recursive: bool = True) -> ListResult:
        """
        List all objects whose key starts with prefix.

        If recursive is False, only objects directly below the prefix are returned, and the
        folders below the prefix are reported (once, with trailing slash) in excluded_subpaths.
        """

    @abstractmethod
    async def copy(self, source_key: str, dest_key: str) -> None:
        """Copy an object, overwriting dest_key. Raises on failure."""

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Remove an object. Raises on failure."""

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str | None = None) -> None:
        """Create or overwrite an object"""

    @abstractmethod
    async def presigned_get(self, key: str, hours_valid: int = 24) -> str:
        """A url that can be used to download this object without further authentication"""
