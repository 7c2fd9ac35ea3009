"""
Interact with S3-compatible object storage (e.g., AWS S3, MinIO, SeaweedFS, Cloudflare R2).
"""

import logging
from typing import AsyncIterable

import async_lru
from botocore.exceptions import ClientError
from types_aiobotocore_s3.type_defs import ListObjectsV2RequestTypeDef

from mediavault.config import get_settings
from mediavault.connections import s3
from mediavault.objectstorage.store import ListedObject, ListResult, ObjectNotFound, ObjectStore
from mediavault.paths import encode_for_copy_source


async def get_bucket() -> str:
    """
    Get the configured bucket, taking into account whether we are using a test bucket.
    The bucket is created if it doesn't exist yet.
    """
    settings = get_settings()
    bucket = f"test-{settings.bucket}" if settings.use_test_bucket else settings.bucket
    return await _create_or_get_bucket_name(bucket)


@async_lru.alru_cache(maxsize=1000)
async def _create_or_get_bucket_name(bucket: str) -> str:
    try:
        await s3().head_bucket(Bucket=bucket)
    except ClientError as e:
        error = e.response.get("Error", {})
        if error.get("Code") in ("404", "NoSuchBucket"):
            logging.info(f"Creating bucket {bucket}")
            await s3().create_bucket(Bucket=bucket)
        else:
            raise
    return bucket


def _is_not_found(e: ClientError) -> bool:
    return e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey")


async def scan_s3_objects(
    bucket: str, prefix: str = "", recursive: bool = True, page_size: int = 1000
) -> AsyncIterable[ListedObject | str]:
    """
    Yield all objects under the prefix, following continuation tokens.
    For non-recursive scans, the common prefixes ("subfolders") are yielded as plain strings.
    """
    params: ListObjectsV2RequestTypeDef = {"Bucket": bucket, "Prefix": prefix, "MaxKeys": page_size}
    if not recursive:
        params["Delimiter"] = "/"

    while True:
        res = await s3().list_objects_v2(**params)
        for content in res.get("Contents", []):
            if "Key" in content:
                yield ListedObject(
                    key=content["Key"],
                    size=content.get("Size"),
                    last_modified=content.get("LastModified"),
                )
        if not recursive:
            for common_prefix in res.get("CommonPrefixes", []):
                if "Prefix" in common_prefix:
                    yield common_prefix["Prefix"]
        token = res.get("NextContinuationToken")
        if not res.get("IsTruncated") or not token:
            break
        params["ContinuationToken"] = token


class S3ObjectStore(ObjectStore):
    """ObjectStore on an S3 bucket, using the client started by mediavault.connections"""

    def __init__(self, bucket: str | None = None):
        self._bucket = bucket

    async def bucket(self) -> str:
        if self._bucket is None:
            self._bucket = await get_bucket()
        return self._bucket

    async def list(self, prefix: str, recursive: bool = True) -> ListResult:
        bucket = await self.bucket()
        items: list[ListedObject] = []
        excluded: list[str] = []
        async for obj in scan_s3_objects(bucket, prefix, recursive=recursive):
            if isinstance(obj, str):
                excluded.append(obj)
            else:
                items.append(obj)
        return {"items": items, "excluded_subpaths": excluded}

    async def copy(self, source_key: str, dest_key: str) -> None:
        bucket = await self.bucket()
        copy_source = f"{bucket}/{encode_for_copy_source(source_key)}"
        try:
            await s3().copy_object(Bucket=bucket, Key=dest_key, CopySource=copy_source)
        except ClientError as e:
            if _is_not_found(e):
                raise ObjectNotFound(f"Object {source_key} not found in bucket")
            raise

    async def remove(self, key: str) -> None:
        bucket = await self.bucket()
        await s3().delete_object(Bucket=bucket, Key=key)

    async def put(self, key: str, data: bytes, content_type: str | None = None) -> None:
        bucket = await self.bucket()
        if content_type:
            await s3().put_object(Bucket=bucket, Key=key, Body=data, ContentType=content_type)
        else:
            await s3().put_object(Bucket=bucket, Key=key, Body=data)

    async def presigned_get(self, key: str, hours_valid: int = 24) -> str:
        bucket = await self.bucket()
        return await s3().generate_presigned_url(
            "get_object", Params={"Bucket": bucket, "Key": key}, ExpiresIn=hours_valid * 3600
        )
