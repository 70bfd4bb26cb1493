# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides an in-memory cache store, an in-memory key index and an upstream
fetcher backed by httpx.MockTransport. No network, no external services.
"""

from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest

from bestthumb.cache.base_cache_store import BaseCacheStore, BaseKeyIndex, CacheWriteError
from bestthumb.core.quality import parse_cache_key
from bestthumb.upstream.fetcher import UpstreamFetcher

VALID_ID = "aGb3AlQrN9E"


class InMemoryCacheStore(BaseCacheStore):
    """Dict-backed cache store that records every call."""

    def __init__(self, fail_puts: bool = False) -> None:
        self.blobs: dict[str, bytes] = {}
        self.get_calls: list[str] = []
        self.put_calls: list[str] = []
        self.fail_puts = fail_puts
        self.fail_keys: set[str] = set()

    async def get(self, key: str) -> bytes | None:
        self.get_calls.append(key)
        return self.blobs.get(key)

    async def put(self, key: str, data: bytes) -> None:
        self.put_calls.append(key)
        if self.fail_puts or key in self.fail_keys:
            raise CacheWriteError(f"simulated failure for {key}")
        self.blobs[key] = data

    async def list_ids(self) -> list[str]:
        ids = {parsed[0] for k in self.blobs if (parsed := parse_cache_key(k))}
        return sorted(ids)


class InMemoryKeyIndex(BaseKeyIndex):
    """Dict-backed key index."""

    def __init__(self) -> None:
        self.entries: dict[str, str] = {}
        self.fail_ids: set[str] = set()

    async def set(self, video_id: str, key: str) -> None:
        if video_id in self.fail_ids:
            raise CacheWriteError(f"simulated index failure for {video_id}")
        self.entries[video_id] = key

    async def get(self, video_id: str) -> str | None:
        return self.entries.get(video_id)


class UpstreamScript:
    """Route upstream URLs to canned responses and record every request."""

    def __init__(self) -> None:
        self.responses: dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requested: list[str] = []

    def respond(self, path_suffix: str, status: int, body: bytes = b"") -> None:
        self.responses[path_suffix] = lambda request: httpx.Response(status, content=body)

    def redirect(self, path_suffix: str, location: str, status: int = 302) -> None:
        self.responses[path_suffix] = lambda request: httpx.Response(
            status, headers={"Location": location},
        )

    def fail(self, path_suffix: str) -> None:
        def raise_error(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)
        self.responses[path_suffix] = raise_error

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requested.append(url)
        for suffix, respond in self.responses.items():
            if url.endswith(suffix):
                return respond(request)
        return httpx.Response(404)


@pytest.fixture
def memory_store() -> InMemoryCacheStore:
    return InMemoryCacheStore()


@pytest.fixture
def memory_index() -> InMemoryKeyIndex:
    return InMemoryKeyIndex()


@pytest.fixture
def upstream() -> UpstreamScript:
    """Scripted upstream: anything not scripted answers 404."""
    return UpstreamScript()


@pytest.fixture
def fetcher(upstream: UpstreamScript) -> UpstreamFetcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))
    return UpstreamFetcher(client=client)
