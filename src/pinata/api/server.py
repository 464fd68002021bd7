"""FastAPI server for Pinata.

Script-free HTML front-end for Pinterest image search.

Endpoints:
    GET /                   - Landing page (search form, saved bookmarks)
    GET /search             - Streamed results page
    GET /image_proxy        - Allow-listed image relay
    GET /revsearch          - Reverse image search redirect
    POST /bookmark, /bookmark_image, /bookmark_remove - Bookmark mutations
    GET /bookmarks/export, POST /bookmarks/import     - Bookmark transfer
    GET /health             - Health check
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.responses import HTMLResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles

from pinata import __version__
from pinata.api.bookmarks import router as bookmarks_router
from pinata.api.dependencies import get_bookmark_store
from pinata.api.search import router as search_router
from pinata.bookmarks.cookies import read_bookmarks
from pinata.bookmarks.store import BookmarkStore
from pinata.config import Settings
from pinata.config import settings as default_settings
from pinata.tools._http_utils import UpstreamError, create_http_client
from pinata.tools.image_proxy import ImageProxyError
from pinata.tools.pinterest_search import QueryBuildError
from pinata.types.api import HealthResponse
from pinata.utils.buffers import BufferPool
from pinata.utils.logging import setup_logger
from pinata.web.pages import render_index

logger = setup_logger(__name__)

STATIC_DIR = Path(__file__).resolve().parent.parent / "static"


def _log_feature_state(settings: Settings) -> None:
    if settings.bookmarks_enabled:
        logger.info("Bookmarking enabled")
    elif settings.bookmark_key.strip():
        logger.warning("PINATA_BOOKMARK_KEY present but invalid; bookmarking disabled")
    else:
        logger.info("PINATA_BOOKMARK_KEY not set; bookmarking disabled")

    if settings.disable_reverse:
        logger.info("Reverse image search disabled via PINATA_DISABLE_REVERSE")


def create_app(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the application.

    Args:
        settings: Frozen settings; defaults to the process-wide instance
        transport: Optional outbound transport override (tests)

    Returns:
        Configured FastAPI app. The shared HTTP client lives for the app's
        lifespan.
    """
    settings = settings or default_settings
    _log_feature_state(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.http_client = create_http_client(settings, transport=transport)
        try:
            yield
        finally:
            await app.state.http_client.aclose()

    app = FastAPI(
        title="Pinata",
        description="Streaming image search front-end with encrypted cookie bookmarks.",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
    )
    app.state.settings = settings
    app.state.bookmark_store = BookmarkStore(
        settings.bookmark_key_bytes,
        max_entries=settings.max_bookmarks,
        max_value_length=settings.max_bookmark_length,
    )
    app.state.buffer_pool = BufferPool(size=settings.copy_buffer_size, max_idle=settings.max_connections * 2)

    _register_exception_handlers(app)

    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")
    app.include_router(search_router)
    app.include_router(bookmarks_router)

    @app.get("/", response_class=HTMLResponse)
    async def index(
        request: Request,
        store: BookmarkStore = Depends(get_bookmark_store),
    ) -> HTMLResponse:
        """Landing page; bookmarks are read from the cookie when the store is enabled."""
        entries = read_bookmarks(request, store, settings)
        return HTMLResponse(render_index(entries, store.enabled, settings.query_max_length))

    @app.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(
            status="ok",
            version=__version__,
            bookmarks_enabled=settings.bookmarks_enabled,
            reverse_search_enabled=settings.reverse_enabled,
        )

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(UpstreamError)
    async def upstream_error_handler(request: Request, exc: UpstreamError) -> PlainTextResponse:
        return PlainTextResponse("failed to fetch", status_code=502)

    @app.exception_handler(QueryBuildError)
    async def query_build_error_handler(request: Request, exc: QueryBuildError) -> PlainTextResponse:
        logger.error("Failed to build upstream request", extra={"error": str(exc)})
        return PlainTextResponse("internal", status_code=500)

    @app.exception_handler(ImageProxyError)
    async def image_proxy_error_handler(request: Request, exc: ImageProxyError) -> PlainTextResponse:
        logger.debug("Rejected image proxy request", extra={"status": exc.status_code})
        return PlainTextResponse(exc.detail, status_code=exc.status_code)


app = create_app()
