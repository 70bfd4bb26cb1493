# tests/unit/cache/test_unit_redis_index.py — v1
"""Tests for cache/redis_index.py — mocked Redis client."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from bestthumb.cache.base_cache_store import CacheWriteError
from bestthumb.cache.redis_index import RedisKeyIndex


def _index(prefix: str = "") -> tuple[RedisKeyIndex, dict[str, str]]:
    storage: dict[str, str] = {}
    mock_redis = MagicMock()
    mock_redis.get = lambda k: storage.get(k)
    mock_redis.set = lambda k, v: storage.__setitem__(k, v)

    with patch("bestthumb.cache.redis_index.RedisKeyIndex.__init__", return_value=None):
        index = RedisKeyIndex.__new__(RedisKeyIndex)
        index._client = mock_redis
        index._prefix = prefix
    return index, storage


class TestRedisKeyIndex:
    @pytest.mark.asyncio
    async def test_set_and_get(self):
        index, storage = _index()
        await index.set("aGb3AlQrN9E", "aG.sddefault.aGb3AlQrN9E.jpg")
        assert storage == {"aGb3AlQrN9E": "aG.sddefault.aGb3AlQrN9E.jpg"}
        assert await index.get("aGb3AlQrN9E") == "aG.sddefault.aGb3AlQrN9E.jpg"

    @pytest.mark.asyncio
    async def test_prefix(self):
        index, storage = _index(prefix="thumb:")
        await index.set("aGb3AlQrN9E", "k")
        assert "thumb:aGb3AlQrN9E" in storage

    @pytest.mark.asyncio
    async def test_set_overwrites(self):
        index, _ = _index()
        await index.set("aGb3AlQrN9E", "old")
        await index.set("aGb3AlQrN9E", "new")
        assert await index.get("aGb3AlQrN9E") == "new"

    @pytest.mark.asyncio
    async def test_set_failure_raises(self):
        index, _ = _index()
        index._client.set = MagicMock(side_effect=ConnectionError("refused"))
        with pytest.raises(CacheWriteError, match="aGb3AlQrN9E"):
            await index.set("aGb3AlQrN9E", "k")

    @pytest.mark.asyncio
    async def test_get_failure_is_none(self):
        index, _ = _index()
        index._client.get = MagicMock(side_effect=ConnectionError("refused"))
        assert await index.get("aGb3AlQrN9E") is None

    def test_from_url(self):
        with patch("redis.Redis.from_url") as from_url:
            RedisKeyIndex("redis://localhost:6379/0")
        from_url.assert_called_once_with("redis://localhost:6379/0", decode_responses=True)

    def test_import_error_without_redis(self):
        """Clear ImportError when redis is not available."""
        import sys
        redis_mod = sys.modules.get("redis")
        sys.modules["redis"] = None  # type: ignore[assignment]
        try:
            with pytest.raises(ImportError, match="redis"):
                RedisKeyIndex(redis_url="redis://localhost")
        finally:
            if redis_mod is not None:
                sys.modules["redis"] = redis_mod
            else:
                sys.modules.pop("redis", None)
