"""Helper methods for the API."""

import functools

from mediavault.cache import ListingCache
from mediavault.models import StorageItem
from mediavault.objectstorage.s3bucket import S3ObjectStore
from mediavault.operations.service import StorageOperations


@functools.lru_cache()
def listing_cache() -> ListingCache[list[StorageItem]]:
    """The listing cache shared by all requests of this process"""
    return ListingCache()


def get_operations() -> StorageOperations:
    """FastAPI dependency for the operations on the configured bucket"""
    return StorageOperations(S3ObjectStore(), cache=listing_cache())
