# src/cache/s3_store.py — v1
"""S3-compatible object store backend (CACHE_BACKEND=s3).

Supports AWS S3, MinIO, and other S3-compatible storage.
Requires 'boto3' package: pip install boto3.

Objects are stored at the bucket root under their canonical cache key. The
boto3 client is thread-safe and pools its HTTP connections, so calls are
dispatched to worker threads without any lock.
"""

from __future__ import annotations

import asyncio
import logging

from bestthumb.cache.base_cache_store import BaseCacheStore, CacheWriteError
from bestthumb.core.quality import parse_cache_key

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


class S3CacheStore(BaseCacheStore):
    """Blob store backed by an S3 bucket."""

    def __init__(
        self,
        bucket: str,
        region: str | None = None,
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        path_style: bool = False,
    ) -> None:
        """Initialize the S3 client.

        Args:
            bucket: S3 bucket name.
            region: Region name (optional, uses boto3 default if not set).
            endpoint_url: Custom endpoint for MinIO/compatible storage.
            access_key: Access key id (optional, uses boto3 chain if not set).
            secret_key: Secret access key.
            path_style: Force path-style addressing (required by most MinIO
                deployments).
        """
        try:
            import boto3
            from botocore.config import Config
        except ImportError as e:
            raise ImportError(
                "boto3 package required for S3 cache store: pip install boto3"
            ) from e

        kwargs: dict = {}
        if region:
            kwargs["region_name"] = region
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        if access_key and secret_key:
            kwargs["aws_access_key_id"] = access_key
            kwargs["aws_secret_access_key"] = secret_key
        if path_style:
            kwargs["config"] = Config(s3={"addressing_style": "path"})

        self._s3 = boto3.client("s3", **kwargs)
        self._bucket = bucket

    async def get(self, key: str) -> bytes | None:
        """Fetch an object; NoSuchKey is a miss, other errors are logged."""
        try:
            return await asyncio.to_thread(self._get_sync, key)
        except Exception as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return None
            logger.warning(
                "S3 read failed for s3://%s/%s: %s", self._bucket, key, e,
            )
            return None

    async def put(self, key: str, data: bytes) -> None:
        """Upload an object, overwriting any previous version."""
        try:
            await asyncio.to_thread(
                self._s3.put_object, Bucket=self._bucket, Key=key, Body=data,
            )
        except Exception as e:
            raise CacheWriteError(
                f"S3 upload failed for s3://{self._bucket}/{key}: {e}"
            ) from e
        logger.debug("S3 write: s3://%s/%s (%d bytes)", self._bucket, key, len(data))

    async def list_ids(self) -> list[str]:
        """List video IDs by walking every object key in the bucket."""
        keys = await asyncio.to_thread(self._list_keys_sync)
        ids: set[str] = set()
        for key in keys:
            parsed = parse_cache_key(key)
            if parsed is not None:
                ids.add(parsed[0])
        return sorted(ids)

    def _get_sync(self, key: str) -> bytes:
        response = self._s3.get_object(Bucket=self._bucket, Key=key)
        return response["Body"].read()

    def _list_keys_sync(self) -> list[str]:
        paginator = self._s3.get_paginator("list_objects_v2")
        keys: list[str] = []
        for page in paginator.paginate(Bucket=self._bucket):
            for obj in page.get("Contents", []):
                keys.append(obj["Key"])
        return keys


def _error_code(exc: Exception) -> str | None:
    """Extract the error code from a botocore ClientError, if any."""
    response = getattr(exc, "response", None)
    if not isinstance(response, dict):
        return None
    return response.get("Error", {}).get("Code")
