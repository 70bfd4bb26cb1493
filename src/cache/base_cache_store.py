# src/cache/base_cache_store.py — v3
"""Abstract cache store interface.

A cache store is a byte-addressed blob backend keyed by canonical cache keys
(see core.quality.cache_key). Callers depend only on get/put; which backend
is active is a deployment decision made by cache_factory.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class CacheStoreError(Exception):
    """Base error raised by cache backends."""


class CacheWriteError(CacheStoreError):
    """Raised when a blob could not be persisted."""


class BaseCacheStore(ABC):
    """Unified interface for thumbnail cache backends."""

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Return the cached bytes for key, or None.

        Must not raise for absence. Transient backend errors are logged and
        reported as None.
        """

    @abstractmethod
    async def put(self, key: str, data: bytes) -> None:
        """Store data under key, fully replacing any previous object.

        Raises:
            CacheWriteError: If the backend rejected the write.
        """

    @abstractmethod
    async def list_ids(self) -> list[str]:
        """List the video IDs that have at least one cached variant."""


class BaseKeyIndex(ABC):
    """Key-value index mapping a video ID to its canonical cache key."""

    @abstractmethod
    async def set(self, video_id: str, key: str) -> None:
        """Record key as the cache key for video_id.

        Raises:
            CacheWriteError: If the index rejected the write.
        """

    @abstractmethod
    async def get(self, video_id: str) -> str | None:
        """Return the indexed cache key for video_id, or None."""

    def close(self) -> None:
        """Release backend connections. No-op for indexes holding none."""
