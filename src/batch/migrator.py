# src/batch/migrator.py — v1
"""Bulk migrator: backfill the object store and key index from a local cache.

Input layout (same as LocalCacheStore):

    <root>/<slug>/<encoding>/<video_id>.<encoding>

Workflow:
    1. Enumerate the file of every ladder directory
    2. Derive (video_id, quality) and the canonical cache key
    3. Drain the list with a fixed pool of worker tasks; each item writes
       the index entry and uploads the blob
    4. Per-item failures go to the error log; the batch always completes

Re-running the batch is the recovery mechanism: writes are full overwrites
of the same key with the same bytes.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from bestthumb.batch.models import MigrationFailure, MigrationItem, MigrationResult
from bestthumb.core.quality import LADDER, Quality, cache_key
from bestthumb.logging.context import set_stage

if TYPE_CHECKING:
    from bestthumb.cache.base_cache_store import BaseCacheStore, BaseKeyIndex

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 10


def item_from_path(path: Path) -> MigrationItem | None:
    """Derive a MigrationItem from a cached file path.

    The video ID is the file name up to the first '.', the quality comes from
    the two enclosing directories (slug, then encoding). Returns None when
    those directories do not name a ladder entry.
    """
    video_id = path.name.split(".", 1)[0]
    quality = Quality.from_parts(path.parent.parent.name, path.parent.name)
    if not video_id or quality is None:
        return None
    return MigrationItem(
        file_path=str(path),
        video_id=video_id,
        quality=quality,
        key=cache_key(video_id, quality),
    )


class BulkMigrator:
    """Upload a per-quality directory tree into a cache store and key index."""

    def __init__(
        self,
        store: BaseCacheStore,
        index: BaseKeyIndex | None = None,
        concurrency: int = DEFAULT_CONCURRENCY,
        error_log: Path | None = None,
        log_timings: bool = False,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self._store = store
        self._index = index
        self._concurrency = concurrency
        self._error_log = error_log
        self._log_timings = log_timings

    def scan(self, root: Path) -> list[MigrationItem]:
        """Enumerate every migratable file under root.

        Raises:
            ValueError: If root is not a directory.
        """
        if not root.is_dir():
            raise ValueError(f"Migration root is not a directory: {root}")

        items: list[MigrationItem] = []
        for quality in LADDER:
            directory = root / quality.slug / quality.encoding
            if not directory.is_dir():
                logger.warning("Skipping missing directory %s", directory)
                continue
            logger.info("Collecting thumbnails from %s", directory)
            for path in sorted(directory.iterdir()):
                if not path.is_file() or path.name.startswith("."):
                    continue
                item = item_from_path(path)
                if item is not None:
                    items.append(item)

        logger.info("Scanned %s: found %d files", root, len(items))
        return items

    async def migrate(self, root: Path) -> MigrationResult:
        """Scan root and migrate everything found."""
        return await self.run(self.scan(root), root=root)

    async def run(
        self, items: list[MigrationItem], root: Path | None = None,
    ) -> MigrationResult:
        """Migrate items with at most `concurrency` in flight."""
        t0 = time.perf_counter()
        set_stage("migrate")

        queue: asyncio.Queue[MigrationItem] = asyncio.Queue()
        for item in items:
            queue.put_nowait(item)

        failures: list[MigrationFailure] = []
        failed_paths: set[str] = set()

        async def worker() -> None:
            while True:
                try:
                    item = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                item_failures = await self._migrate_item(item)
                for failure in item_failures:
                    self._record_failure(failure)
                    failures.append(failure)
                if item_failures:
                    failed_paths.add(item.file_path)

        workers = min(self._concurrency, len(items))
        logger.info(
            "Processing %d files in parallel (%d at a time)",
            len(items), self._concurrency,
        )
        await asyncio.gather(*(worker() for _ in range(workers)))

        duration = time.perf_counter() - t0
        result = MigrationResult(
            root=str(root) if root is not None else "",
            total=len(items),
            succeeded=len(items) - len(failed_paths),
            failed=len(failed_paths),
            failures=failures,
            duration_seconds=round(duration, 2),
        )
        logger.info(
            "Migration complete: %d ok, %d failed in %.1fs",
            result.succeeded, result.failed, result.duration_seconds,
        )
        return result

    async def _migrate_item(self, item: MigrationItem) -> list[MigrationFailure]:
        """Write index entry and blob for one item; return its failures."""
        t0 = time.perf_counter()

        try:
            data = await asyncio.to_thread(Path(item.file_path).read_bytes)
        except OSError as e:
            return [self._failure(item, "read", e)]

        failures: list[MigrationFailure] = []

        if self._index is not None:
            try:
                await self._index.set(item.video_id, item.key)
            except Exception as e:
                failures.append(self._failure(item, "index", e))

        try:
            await self._store.put(item.key, data)
        except Exception as e:
            failures.append(self._failure(item, "upload", e))

        if not failures and self._log_timings:
            logger.debug(
                "Uploaded %s in %.1fms", item.key, (time.perf_counter() - t0) * 1000,
            )
        return failures

    @staticmethod
    def _failure(item: MigrationItem, stage: str, exc: Exception) -> MigrationFailure:
        return MigrationFailure(
            file_path=item.file_path,
            video_id=item.video_id,
            key=item.key,
            stage=stage,
            error=str(exc),
        )

    def _record_failure(self, failure: MigrationFailure) -> None:
        """Log a failure and append it to the error log file."""
        message = (
            f"ERROR: {failure.stage} failed for {failure.video_id} "
            f"({failure.key}): {failure.error}"
        )
        logger.error(message)
        if self._error_log is None:
            return
        timestamp = datetime.now(timezone.utc).isoformat()
        try:
            with self._error_log.open("a", encoding="utf-8") as fh:
                fh.write(f"{timestamp} {message}\n")
        except OSError as e:
            logger.error("Could not append to error log %s: %s", self._error_log, e)
