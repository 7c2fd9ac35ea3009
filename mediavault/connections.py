"""
The async S3 client shared by the whole process.

The client is created once by start_connections and closed by close_connections.
Code that needs it calls s3(), which fails loudly if the client was never started
(e.g. because no object storage is configured).
"""

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncGenerator

from aiobotocore.config import AioConfig
from aiobotocore.session import get_session
from types_aiobotocore_s3.client import S3Client

from mediavault.config import get_settings


class MediaVaultConnections:
    s3_client: S3Client | None = None
    s3_exit_stack: AsyncExitStack | None = None

    @property
    def started(self) -> bool:
        return self.s3_client is not None


CONNECTIONS = MediaVaultConnections()


@asynccontextmanager
async def mediavault_connections() -> AsyncGenerator[None, None]:
    """
    Start the object storage client for the duration of the block. Use this exactly once:
        - in the FastAPI lifespan when serving
        - in a fixture for tests that talk to a real store
        - around a CLI command that needs the store
    """
    try:
        await start_connections()
        yield
    finally:
        await close_connections()


async def start_connections() -> None:
    if CONNECTIONS.started:
        logging.debug("S3 client already started")
        return
    if not s3_enabled():
        logging.warning("S3 is not configured (set mediavault_s3_host and keys), object storage is unavailable")
        return

    settings = get_settings()
    logging.debug(f"Connecting with S3 at {settings.s3_host}, region={settings.s3_region}")
    client = get_session().create_client(
        service_name="s3",
        endpoint_url=settings.s3_host,
        region_name=settings.s3_region,
        aws_access_key_id=settings.s3_access_key,
        aws_secret_access_key=settings.s3_secret_key,
        config=AioConfig(signature_version="s3v4"),
    )
    stack = AsyncExitStack()
    CONNECTIONS.s3_client = await stack.enter_async_context(client)
    CONNECTIONS.s3_exit_stack = stack


async def close_connections() -> None:
    stack = CONNECTIONS.s3_exit_stack
    CONNECTIONS.s3_client = None
    CONNECTIONS.s3_exit_stack = None
    if stack is not None:
        await stack.aclose()


def s3() -> S3Client:
    """The started S3 client"""
    if CONNECTIONS.s3_client is None:
        raise ConnectionError("S3 client not started, is object storage configured?")
    return CONNECTIONS.s3_client


def s3_enabled() -> bool:
    """Object storage is used only when host and both keys are configured"""
    settings = get_settings()
    return all([settings.s3_host, settings.s3_access_key, settings.s3_secret_key])
