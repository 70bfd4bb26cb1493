# src/cache/local_store.py — v1
"""Local filesystem cache store (default CACHE_BACKEND=local).

Blobs live in quality-named subdirectories under THUMBNAIL_DIR:

    <root>/<slug>/<encoding>/<video_id>.<encoding>

which is also the input layout expected by the bulk migrator.
"""

from __future__ import annotations

import asyncio
import logging
import os
import uuid
from pathlib import Path

from bestthumb.cache.base_cache_store import BaseCacheStore, CacheWriteError
from bestthumb.core.quality import LADDER, parse_cache_key

logger = logging.getLogger(__name__)


class LocalCacheStore(BaseCacheStore):
    """File-based cache store rooted at a thumbnail directory."""

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).expanduser()

    @property
    def root(self) -> Path:
        return self._root

    async def get(self, key: str) -> bytes | None:
        """Read the blob for key; missing or unreadable files are a miss."""
        path = self._entry_path(key)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Failed to read cached thumbnail %s: %s", path, e)
            return None

    async def put(self, key: str, data: bytes) -> None:
        """Write the blob for key, replacing any existing file atomically."""
        path = self._entry_path(key)
        try:
            await asyncio.to_thread(_atomic_write, path, data)
        except OSError as e:
            raise CacheWriteError(f"Failed to write {path}: {e}") from e
        logger.debug("Local write: %s (%d bytes)", path, len(data))

    async def list_ids(self) -> list[str]:
        """Scan every ladder directory and collect distinct video IDs."""
        return await asyncio.to_thread(self._scan_ids)

    def _scan_ids(self) -> list[str]:
        ids: set[str] = set()
        for quality in LADDER:
            directory = self._root / quality.slug / quality.encoding
            if not directory.is_dir():
                continue
            for path in directory.iterdir():
                if path.is_file() and not path.name.startswith("."):
                    ids.add(path.name.split(".", 1)[0])
        return sorted(ids)

    def _entry_path(self, key: str) -> Path:
        """Return file path for a cache key.

        Keys that do not parse as canonical keys are stored flat under the
        root so that get/put stay total over arbitrary strings.
        """
        parsed = parse_cache_key(key)
        if parsed is None:
            safe_key = key.replace("/", "_").replace("\\", "_")
            return self._root / safe_key
        video_id, quality = parsed
        return (
            self._root / quality.slug / quality.encoding
            / f"{video_id}.{quality.encoding}"
        )


def _atomic_write(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
    try:
        tmp.write_bytes(data)
        os.replace(tmp, path)
    finally:
        if tmp.exists():
            tmp.unlink()
