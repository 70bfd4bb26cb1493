# src/upstream/fetcher.py — v2
"""Upstream thumbnail fetcher (YouTube image CDN).

URLs are ``<base-for-encoding>/<video_id>/<slug>.<encoding>``. The fetcher
classifies every attempt so the resolver can tell "this variant does not
exist" (404) apart from failures that must abort the ladder sweep.

Redirects are followed, so a 3xx from the CDN never reaches the ladder
classification. No timeout is configured beyond the httpx client default.
"""

from __future__ import annotations

import logging
from typing import Literal

import httpx
from pydantic import BaseModel

from bestthumb.core.quality import Quality, url_fragment

logger = logging.getLogger(__name__)

TRANSPORT_ERROR_STATUS = 500

DEFAULT_BASES: dict[str, str] = {
    "webp": "https://i.ytimg.com/vi_webp",
    "jpg": "https://i.ytimg.com/vi",
}


class FetchResult(BaseModel):
    """Classified outcome of one upstream request."""

    outcome: Literal["found", "not_found", "failed"]
    status: int
    data: bytes | None = None
    url: str


class UpstreamFetcher:
    """Fetch thumbnail variants from the upstream CDN."""

    def __init__(
        self,
        bases: dict[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            bases: Base URL per encoding. Defaults to the public CDN.
            client: Shared async client. One is created (and owned) if None.
        """
        self._bases = dict(DEFAULT_BASES if bases is None else bases)
        self._owns_client = client is None
        if client is None:
            client = httpx.AsyncClient(follow_redirects=True)
        self._client = client

    def url_for(self, video_id: str, quality: Quality) -> str:
        """Build the upstream URL serving quality for video_id."""
        base = self._bases[quality.encoding].rstrip("/")
        return f"{base}/{video_id}/{url_fragment(quality)}"

    async def fetch(self, video_id: str, quality: Quality) -> FetchResult:
        """Request one variant and classify the response."""
        url = self.url_for(video_id, quality)
        try:
            response = await self._client.get(url, follow_redirects=True)
        except httpx.HTTPError as e:
            logger.error("Error fetching thumbnail: %s: %s", url, e)
            return FetchResult(outcome="failed", status=TRANSPORT_ERROR_STATUS, url=url)

        if response.status_code == 404:
            logger.debug("Upstream has no %s for %s", quality, video_id)
            return FetchResult(outcome="not_found", status=404, url=url)

        if response.status_code != 200:
            logger.error("Error fetching thumbnail: %s: %d", url, response.status_code)
            return FetchResult(outcome="failed", status=response.status_code, url=url)

        data = response.content
        if not data:
            logger.error("Empty thumbnail body from %s", url)
            return FetchResult(outcome="failed", status=TRANSPORT_ERROR_STATUS, url=url)

        return FetchResult(outcome="found", status=200, data=data, url=url)

    async def aclose(self) -> None:
        """Close the underlying client if this fetcher created it."""
        if self._owns_client:
            await self._client.aclose()
