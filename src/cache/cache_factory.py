# src/cache/cache_factory.py — v3
"""Factory for cache store and key index instantiation."""

from __future__ import annotations

from bestthumb.cache.base_cache_store import BaseCacheStore, BaseKeyIndex
from bestthumb.config.settings import Settings


def create_cache_store(settings: Settings | None = None) -> BaseCacheStore:
    """Instantiate the configured cache backend.

    Args:
        settings: Application settings. Defaults to the local backend.

    Returns:
        Configured BaseCacheStore implementation.
    """
    backend = "local" if settings is None else settings.cache_backend

    if backend == "local":
        from bestthumb.cache.local_store import LocalCacheStore
        root = "thumbnails" if settings is None else settings.thumbnail_dir
        return LocalCacheStore(root=root)

    if backend == "s3":
        from bestthumb.cache.s3_store import S3CacheStore
        if not settings.s3_bucket:
            raise ValueError("S3_BUCKET must be set when CACHE_BACKEND=s3")
        return S3CacheStore(
            bucket=settings.s3_bucket,
            region=settings.s3_region or None,
            endpoint_url=settings.s3_endpoint or None,
            access_key=settings.s3_access_key or None,
            secret_key=settings.s3_secret_key or None,
            path_style=settings.s3_path_style,
        )

    raise ValueError(f"Unsupported cache backend: {backend!r}")


def create_key_index(settings: Settings | None = None) -> BaseKeyIndex | None:
    """Instantiate the key index, or None when the backend needs none.

    The local backend addresses blobs by path and keeps no separate index.
    """
    if settings is None or settings.cache_backend == "local":
        return None

    from bestthumb.cache.redis_index import RedisKeyIndex
    if not settings.redis_url:
        raise ValueError("REDIS_URL must be set when CACHE_BACKEND=s3")
    return RedisKeyIndex(redis_url=settings.redis_url, prefix=settings.index_prefix)
