# src/resolver/resolver.py — v1
"""Quality-fallback cache-aside resolver.

Workflow for one lookup:
    1. Validate the video ID (invalid -> ValidationFailure, no I/O)
    2. Cache sweep over LADDER; first hit wins
    3. Upstream sweep over LADDER:
       - 200  -> Fresh, launch a detached write-back
       - 404  -> try the next variant
       - else -> abort immediately with that status
    4. All 404 -> Exhausted

Every lookup re-walks the ladder from the top because cache contents change
between requests. Write-backs run as unawaited tasks: the caller gets its
bytes before the cache is updated, and a failed write is only logged (the
next miss re-fetches and overwrites).
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from bestthumb.core.quality import LADDER, Quality, cache_key
from bestthumb.core.validator import validate_video_id
from bestthumb.logging.context import set_stage
from bestthumb.resolver.models import (
    Exhausted,
    Fresh,
    Hit,
    Resolution,
    UpstreamFailure,
    ValidationFailure,
)

if TYPE_CHECKING:
    from bestthumb.cache.base_cache_store import BaseCacheStore, BaseKeyIndex
    from bestthumb.upstream.fetcher import UpstreamFetcher

logger = logging.getLogger(__name__)


class ThumbnailResolver:
    """Resolve the best available thumbnail for a video ID."""

    def __init__(
        self,
        store: BaseCacheStore,
        fetcher: UpstreamFetcher,
        index: BaseKeyIndex | None = None,
        ladder: tuple[Quality, ...] = LADDER,
        log_timings: bool = False,
    ) -> None:
        self._store = store
        self._fetcher = fetcher
        self._index = index
        self._ladder = ladder
        self._log_timings = log_timings
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def pending_writebacks(self) -> int:
        return len(self._pending)

    async def resolve(self, video_id: str) -> Resolution:
        """Run validation, cache sweep and upstream sweep for video_id."""
        t0 = time.perf_counter()

        if not validate_video_id(video_id):
            logger.info("Rejected invalid video id %r", video_id)
            return ValidationFailure(video_id=video_id)

        set_stage("cache")
        hit = await self._sweep_cache(video_id)
        if hit is not None:
            logger.info("Returning cached thumbnail for %s (%s)", video_id, hit.quality)
            self._log_elapsed("cache hit", video_id, t0)
            return hit

        set_stage("upstream")
        outcome = await self._sweep_upstream(video_id)
        self._log_elapsed(outcome.kind, video_id, t0)
        return outcome

    async def drain(self) -> None:
        """Wait for every write-back launched so far to settle."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _sweep_cache(self, video_id: str) -> Hit | None:
        for quality in self._ladder:
            key = cache_key(video_id, quality)
            try:
                data = await self._store.get(key)
            except Exception as e:
                logger.warning("Cache read failed for %s, treating as miss: %s", key, e)
                continue
            if data is not None:
                return Hit(data=data, quality=quality)
        return None

    async def _sweep_upstream(self, video_id: str) -> Resolution:
        for quality in self._ladder:
            result = await self._fetcher.fetch(video_id, quality)

            if result.outcome == "not_found":
                continue

            if result.outcome == "failed":
                logger.warning(
                    "Aborting ladder for %s at %s: upstream status %d",
                    video_id, quality, result.status,
                )
                return UpstreamFailure(status=result.status, quality=quality)

            data = result.data or b""
            self._spawn_writeback(video_id, quality, data)
            logger.info("Fetched new thumbnail for %s (%s)", video_id, quality)
            return Fresh(data=data, quality=quality)

        logger.warning("No thumbnail variant exists upstream for %s", video_id)
        return Exhausted()

    def _spawn_writeback(self, video_id: str, quality: Quality, data: bytes) -> None:
        task = asyncio.create_task(
            self._write_back(video_id, quality, data),
            name=f"writeback:{video_id}",
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write_back(self, video_id: str, quality: Quality, data: bytes) -> None:
        key = cache_key(video_id, quality)
        try:
            await self._store.put(key, data)
            if self._index is not None:
                await self._index.set(video_id, key)
        except Exception as e:
            logger.error("Error caching thumbnail %s: %s", key, e)
            return
        logger.debug("Stored %s (%d bytes)", key, len(data))

    def _log_elapsed(self, what: str, video_id: str, t0: float) -> None:
        if self._log_timings:
            elapsed_ms = (time.perf_counter() - t0) * 1000
            logger.debug("Resolved %s as %s in %.1fms", video_id, what, elapsed_ms)
