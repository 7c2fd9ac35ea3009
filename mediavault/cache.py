"""
Cache of folder listings, keyed on (scope, relative path).

Mutations never update cached listings in place. They mark them stale, and the next
read of a stale (or missing) listing fetches it again from the store. Because a
folder move or rename also changes what every folder below it contains, invalidation
works on a path and all its descendants.
"""

import logging
from datetime import UTC, datetime
from typing import Awaitable, Callable, Generic, NamedTuple, TypeVar

T = TypeVar("T")


class CacheKey(NamedTuple):
    scope: str
    path: str


class CacheEntry(Generic[T]):
    def __init__(self, value: T):
        self.value = value
        self.stale = False
        self.fetched_at = datetime.now(UTC)

    def __repr__(self):
        return f"CacheEntry(stale={self.stale}, fetched_at={self.fetched_at.isoformat()})"


def is_path_or_descendant(path: str, prefix: str) -> bool:
    """
    Is path equal to prefix or inside it? The empty prefix (the root) contains everything.
    "photos" contains "photos/2024", but not "photos-backup".
    """
    prefix = prefix.strip("/")
    path = path.strip("/")
    if prefix == "":
        return True
    return path == prefix or path.startswith(prefix + "/")


class ListingCache(Generic[T]):
    """
    Listings fetched while an invalidation matched their key are stored as stale, since
    they may have been read before the change that caused the invalidation.
    """

    def __init__(self):
        self._entries: dict[CacheKey, CacheEntry[T]] = {}
        self._generation = 0
        # key -> number of fetches in flight
        self._fetching: dict[CacheKey, int] = {}
        # key -> generation of the last invalidation that matched it while fetching
        self._invalidated_at: dict[CacheKey, int] = {}

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: CacheKey) -> T | None:
        """The cached value, if it is present and not stale"""
        entry = self._entries.get(key)
        if entry is None or entry.stale:
            return None
        return entry.value

    def set(self, key: CacheKey, value: T) -> None:
        self._entries[key] = CacheEntry(value)

    def is_stale(self, key: CacheKey) -> bool:
        """True if the key is cached but marked stale. Missing keys are not stale, they are missing."""
        entry = self._entries.get(key)
        return entry is not None and entry.stale

    async def get_or_fetch(self, key: CacheKey, fetch: Callable[[], Awaitable[T]]) -> T:
        entry = self._entries.get(key)
        if entry is not None and not entry.stale:
            return entry.value
        generation = self._generation
        self._fetching[key] = self._fetching.get(key, 0) + 1
        try:
            value = await fetch()
            invalidated = self._invalidated_at.get(key, -1) > generation
        finally:
            self._fetching[key] -= 1
            if not self._fetching[key]:
                del self._fetching[key]
                self._invalidated_at.pop(key, None)
        self.set(key, value)
        if invalidated:
            logging.debug(f"Listing {key} was invalidated while it was fetched, storing it as stale")
            self._entries[key].stale = True
        return value

    def invalidate(self, predicate: Callable[[CacheKey], bool]) -> int:
        """Mark all entries matching the predicate as stale, returning how many were matched"""
        self._generation += 1
        n = 0
        for key, entry in self._entries.items():
            if predicate(key):
                entry.stale = True
                n += 1
        for key in self._fetching:
            if predicate(key):
                self._invalidated_at[key] = self._generation
        return n

    def invalidate_path(self, scope: str, path: str) -> int:
        path = path.strip("/")
        n = self.invalidate(lambda key: key.scope == scope and key.path.strip("/") == path)
        logging.debug(f"Invalidated {n} cached listing(s) for {scope}:{path!r}")
        return n

    def invalidate_with_descendants(self, scope: str, path: str) -> int:
        n = self.invalidate(lambda key: key.scope == scope and is_path_or_descendant(key.path, path))
        logging.debug(f"Invalidated {n} cached listing(s) for {scope}:{path!r} and below")
        return n
