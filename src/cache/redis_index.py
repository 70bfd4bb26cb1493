# src/cache/redis_index.py — v1
"""Redis-backed key index: video ID -> canonical cache key.

Requires 'redis' package: pip install redis.
The client owns a connection pool; every command checks a connection out
for its own duration, so concurrent writers never share a socket.
"""

from __future__ import annotations

import asyncio
import logging

from bestthumb.cache.base_cache_store import BaseKeyIndex, CacheWriteError

logger = logging.getLogger(__name__)


class RedisKeyIndex(BaseKeyIndex):
    """Redis string keys holding the cache key of each video."""

    def __init__(self, redis_url: str, prefix: str = "") -> None:
        try:
            import redis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install redis"
            ) from e

        self._client = redis.Redis.from_url(redis_url, decode_responses=True)
        self._prefix = prefix

    async def set(self, video_id: str, key: str) -> None:
        """Point video_id at key, replacing any previous mapping."""
        try:
            await asyncio.to_thread(self._client.set, self._index_key(video_id), key)
        except Exception as e:
            raise CacheWriteError(
                f"Error setting Redis key for {video_id}: {e}"
            ) from e

    async def get(self, video_id: str) -> str | None:
        """Return the indexed key; lookup failures are logged and reported as None."""
        try:
            return await asyncio.to_thread(self._client.get, self._index_key(video_id))
        except Exception as e:
            logger.warning("Redis lookup failed for %s: %s", video_id, e)
            return None

    def close(self) -> None:
        """Close the Redis connection pool."""
        self._client.close()

    def _index_key(self, video_id: str) -> str:
        return f"{self._prefix}{video_id}"
