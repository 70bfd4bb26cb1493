# tests/unit/upstream/test_unit_fetcher.py — v2
"""Tests for upstream/fetcher.py — URL building and response classification."""

from __future__ import annotations

import httpx
import pytest

from bestthumb.core.quality import Quality
from bestthumb.upstream.fetcher import TRANSPORT_ERROR_STATUS, UpstreamFetcher
from tests.conftest import VALID_ID


def _fetcher(handler, bases=None) -> UpstreamFetcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return UpstreamFetcher(bases=bases, client=client)


class TestUrlFor:
    def test_default_bases(self):
        fetcher = UpstreamFetcher(client=httpx.AsyncClient())
        assert fetcher.url_for(VALID_ID, Quality.WEBP_SD) == (
            f"https://i.ytimg.com/vi_webp/{VALID_ID}/sddefault.webp"
        )
        assert fetcher.url_for(VALID_ID, Quality.JPG_SD) == (
            f"https://i.ytimg.com/vi/{VALID_ID}/sddefault.jpg"
        )

    def test_custom_bases_strip_trailing_slash(self):
        fetcher = UpstreamFetcher(
            bases={"webp": "http://cdn.test/w/", "jpg": "http://cdn.test/j"},
            client=httpx.AsyncClient(),
        )
        assert fetcher.url_for(VALID_ID, Quality.WEBP_HQ) == (
            f"http://cdn.test/w/{VALID_ID}/hqdefault.webp"
        )


class TestFetch:
    @pytest.mark.asyncio
    async def test_found(self):
        fetcher = _fetcher(lambda r: httpx.Response(200, content=b"img"))
        result = await fetcher.fetch(VALID_ID, Quality.WEBP_MAXRES)
        assert result.outcome == "found"
        assert result.data == b"img"
        assert result.status == 200

    @pytest.mark.asyncio
    async def test_not_found(self):
        fetcher = _fetcher(lambda r: httpx.Response(404))
        result = await fetcher.fetch(VALID_ID, Quality.WEBP_MAXRES)
        assert result.outcome == "not_found"
        assert result.data is None

    @pytest.mark.asyncio
    async def test_unexpected_status(self):
        fetcher = _fetcher(lambda r: httpx.Response(503))
        result = await fetcher.fetch(VALID_ID, Quality.JPG_HQ)
        assert result.outcome == "failed"
        assert result.status == 503

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        result = await _fetcher(handler).fetch(VALID_ID, Quality.JPG_HQ)
        assert result.outcome == "failed"
        assert result.status == TRANSPORT_ERROR_STATUS

    @pytest.mark.asyncio
    async def test_empty_body_is_a_failure(self):
        fetcher = _fetcher(lambda r: httpx.Response(200, content=b""))
        result = await fetcher.fetch(VALID_ID, Quality.WEBP_SD)
        assert result.outcome == "failed"
        assert result.status == TRANSPORT_ERROR_STATUS

    @pytest.mark.asyncio
    async def test_redirect_followed_on_shared_client(self):
        def handler(request):
            if request.url.host == "i.ytimg.com":
                return httpx.Response(301, headers={"Location": "https://edge.cdn.test/img.jpg"})
            return httpx.Response(200, content=b"moved")

        result = await _fetcher(handler).fetch(VALID_ID, Quality.JPG_SD)
        assert result.outcome == "found"
        assert result.data == b"moved"

    def test_owned_client_follows_redirects(self):
        assert UpstreamFetcher()._client.follow_redirects is True

    @pytest.mark.asyncio
    async def test_aclose_leaves_shared_client_open(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(404)))
        fetcher = UpstreamFetcher(client=client)
        await fetcher.aclose()
        assert client.is_closed is False
        await client.aclose()

    @pytest.mark.asyncio
    async def test_aclose_closes_owned_client(self):
        fetcher = UpstreamFetcher()
        await fetcher.aclose()
        assert fetcher._client.is_closed is True
