# src/api/app.py — v2
"""HTTP surface: GET /{video_id} serving the best available thumbnail.

Routes:
    GET /            landing page
    GET /all         newline-separated list of cached video IDs
    GET /{video_id}  thumbnail bytes, or the fallback image on failure

Successful responses carry ``X-Cache: HIT`` (served from cache) or
``X-Cache: MISS`` (fetched upstream, write-back launched).
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, PlainTextResponse, Response

from bestthumb.cache.base_cache_store import BaseCacheStore, BaseKeyIndex
from bestthumb.config.settings import Settings
from bestthumb.core.quality import CONTENT_TYPES
from bestthumb.logging.context import clear_context, set_request_context
from bestthumb.resolver.models import Fresh, Hit, Resolution
from bestthumb.resolver.resolver import ThumbnailResolver
from bestthumb.upstream.fetcher import UpstreamFetcher
from bestthumb.version import __version__

logger = logging.getLogger(__name__)

APP_NAME = "bestthumb"

_ASSETS_DIR = Path(__file__).resolve().parent.parent / "assets"
DEFAULT_FALLBACK_IMAGE = _ASSETS_DIR / "fallback.webp"
INDEX_PAGE = _ASSETS_DIR / "index.html"


def build_resolver(
    settings: Settings,
) -> tuple[ThumbnailResolver, BaseCacheStore, BaseKeyIndex | None, UpstreamFetcher]:
    """Wire cache store, key index and upstream fetcher from settings."""
    from bestthumb.cache.cache_factory import create_cache_store, create_key_index

    store = create_cache_store(settings)
    index = create_key_index(settings)
    fetcher = UpstreamFetcher(
        bases={enc: settings.upstream_base(enc) for enc in CONTENT_TYPES}
    )
    resolver = ThumbnailResolver(
        store=store, fetcher=fetcher, index=index, log_timings=settings.debug,
    )
    return resolver, store, index, fetcher


def create_app(
    settings: Settings | None = None,
    resolver: ThumbnailResolver | None = None,
    store: BaseCacheStore | None = None,
    fetcher: UpstreamFetcher | None = None,
    index: BaseKeyIndex | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Application settings. Loaded from .env if None.
        resolver: Pre-built resolver (tests). Built from settings if None.
        store: Cache store backing /all. Required alongside a custom resolver.
        fetcher: Fetcher to close on shutdown when a custom resolver is used.
        index: Key index to close on shutdown when a custom resolver is used.
    """
    if settings is None:
        settings = Settings()
    if resolver is None:
        resolver, store, index, fetcher = build_resolver(settings)

    fallback_path = settings.fallback_image or DEFAULT_FALLBACK_IMAGE
    fallback_image = fallback_path.read_bytes()
    index_html = INDEX_PAGE.read_text(encoding="utf-8")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # Let in-flight write-backs land before the loop goes away
        await resolver.drain()
        if fetcher is not None:
            await fetcher.aclose()
        if index is not None:
            index.close()

    app = FastAPI(title=APP_NAME, version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.resolver = resolver
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or f"req_{uuid.uuid4().hex}"
        request.state.request_id = request_id
        set_request_context(request_id)
        try:
            response = await call_next(request)
        finally:
            clear_context()
        response.headers["x-request-id"] = request_id
        return response

    @app.get("/", response_class=HTMLResponse)
    async def index_page() -> HTMLResponse:
        return HTMLResponse(index_html)

    @app.get("/all", response_class=PlainTextResponse)
    async def get_all_thumbnails() -> PlainTextResponse:
        if store is None:
            return PlainTextResponse("")
        ids = await store.list_ids()
        return PlainTextResponse("\n".join(ids))

    @app.get("/{video_id}")
    async def get_thumbnail(video_id: str, request: Request) -> Response:
        set_request_context(request.state.request_id, video_id)
        outcome = await resolver.resolve(video_id)
        return thumbnail_response(outcome, fallback_image)

    return app


def thumbnail_response(outcome: Resolution, fallback_image: bytes) -> Response:
    """Translate a resolution outcome into an HTTP response."""
    if isinstance(outcome, (Hit, Fresh)):
        return Response(
            content=outcome.data,
            media_type=outcome.quality.content_type,
            headers={
                "X-Cache": "HIT" if isinstance(outcome, Hit) else "MISS",
                "X-Thumbnail-Quality": str(outcome.quality),
            },
        )
    return Response(
        content=fallback_image,
        status_code=outcome.status_code,
        media_type="image/webp",
        headers={"X-Cache": "FALLBACK"},
    )


def run_server(settings: Settings, host: str | None = None, port: int | None = None) -> None:
    """Serve the application with uvicorn."""
    import uvicorn

    app = create_app(settings)
    uvicorn.run(
        app,
        host=host or settings.host,
        port=port or settings.port,
        log_config=None,
    )
