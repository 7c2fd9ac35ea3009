import pytest
from httpx import ASGITransport, AsyncClient

from mediavault import api
from mediavault.api.common import get_operations
from mediavault.cache import ListingCache
from mediavault.config import Settings
from mediavault.models import SessionContext
from mediavault.operations.service import StorageOperations
from tests.tools import SCOPE, MemoryObjectStore


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def settings() -> Settings:
    return Settings()


@pytest.fixture()
def store() -> MemoryObjectStore:
    return MemoryObjectStore()


@pytest.fixture()
def cache() -> ListingCache:
    return ListingCache()


@pytest.fixture()
def operations(store, cache, settings) -> StorageOperations:
    return StorageOperations(store, cache=cache, settings=settings)


@pytest.fixture()
def context() -> SessionContext:
    return SessionContext(scope=SCOPE)


@pytest.fixture()
async def client(operations):
    """API client using the in-memory store instead of S3"""
    api.app.dependency_overrides[get_operations] = lambda: operations
    try:
        async with AsyncClient(transport=ASGITransport(app=api.app), base_url="http://test") as client:
            yield client
    finally:
        api.app.dependency_overrides.pop(get_operations, None)
