# src/core/quality.py — v1
"""Quality ladder: the closed, ordered catalog of thumbnail variants.

Each Quality pairs a resolution slug with an encoding. The declaration order
of the enum IS the fallback priority (highest perceptual quality first), and
LADDER freezes it for the life of the process.

Cache key format: ``<first-2-chars>.<slug>.<video_id>.<encoding>``.
"""

from __future__ import annotations

from enum import Enum

CONTENT_TYPES: dict[str, str] = {
    "webp": "image/webp",
    "jpg": "image/jpeg",
}


class Quality(Enum):
    """One thumbnail variant: (resolution slug, encoding)."""

    WEBP_MAXRES = ("maxresdefault", "webp")
    JPG_MAXRES = ("maxresdefault", "jpg")
    WEBP_SD = ("sddefault", "webp")
    JPG_SD = ("sddefault", "jpg")
    WEBP_HQ = ("hqdefault", "webp")
    JPG_HQ = ("hqdefault", "jpg")

    @property
    def slug(self) -> str:
        return self.value[0]

    @property
    def encoding(self) -> str:
        return self.value[1]

    @property
    def content_type(self) -> str:
        return CONTENT_TYPES[self.encoding]

    @classmethod
    def from_parts(cls, slug: str, encoding: str) -> Quality | None:
        """Look up a quality by slug and encoding; None if unsupported."""
        return _BY_PARTS.get((slug, encoding))

    def __str__(self) -> str:
        return f"{self.slug}.{self.encoding}"


LADDER: tuple[Quality, ...] = tuple(Quality)

_BY_PARTS: dict[tuple[str, str], Quality] = {q.value: q for q in Quality}


def url_fragment(quality: Quality) -> str:
    """Return the trailing path segment of the upstream URL for a quality."""
    return f"{quality.slug}.{quality.encoding}"


def cache_key(video_id: str, quality: Quality) -> str:
    """Derive the canonical cache key for (video_id, quality)."""
    return f"{video_id[:2]}.{quality.slug}.{video_id}.{quality.encoding}"


def parse_cache_key(key: str) -> tuple[str, Quality] | None:
    """Split a cache key into (video_id, quality); None if malformed."""
    parts = key.split(".")
    if len(parts) != 4:
        return None
    _prefix, slug, video_id, encoding = parts
    quality = Quality.from_parts(slug, encoding)
    if quality is None:
        return None
    return video_id, quality


def quality_from_key(key: str) -> Quality | None:
    """Recover the quality encoded in a cache key.

    Malformed keys (wrong field count, unknown slug/encoding pair) yield
    None rather than raising.
    """
    parsed = parse_cache_key(key)
    if parsed is None:
        return None
    return parsed[1]
