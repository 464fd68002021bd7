"""Search, image proxy and reverse search endpoints."""

import asyncio
from collections.abc import AsyncIterator

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse, RedirectResponse, StreamingResponse
from starlette.types import Receive, Scope, Send

from pinata.api.dependencies import get_buffer_pool, get_http_client, get_settings
from pinata.config import Settings
from pinata.streaming.decoder import StreamingDecoder
from pinata.streaming.renderer import render_search_page
from pinata.tools._http_utils import UpstreamError, send_streaming
from pinata.tools.image_proxy import (
    build_image_request,
    relay_body,
    safe_headers,
    validate_image_url,
)
from pinata.tools.pinterest_search import build_search_request, extract_csrftoken, usable_csrftoken
from pinata.tools.reverse_search import build_redirect, decode_reference
from pinata.types.search import SearchQuery
from pinata.utils.buffers import BufferPool
from pinata.utils.logging import setup_logger

logger = setup_logger(__name__)

router = APIRouter(tags=["search"])


class UpstreamStreamingResponse(StreamingResponse):
    """``StreamingResponse`` that owns an open upstream response.

    The upstream response is closed once the ASGI call returns, including
    when the client is gone before the body iterator ever starts.
    """

    def __init__(self, content: AsyncIterator, upstream: httpx.Response, **kwargs):
        super().__init__(content, **kwargs)
        self.upstream = upstream

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            await self.upstream.aclose()


async def _close_after(body: AsyncIterator[str], upstream: httpx.Response) -> AsyncIterator[str]:
    """Relay ``body`` and release the upstream connection however the stream ends.

    A client disconnect cancels this generator, which closes the upstream
    response and stops decoding.
    """
    try:
        async for fragment in body:
            yield fragment
    finally:
        await upstream.aclose()


@router.get("/search")
async def search(
    q: str = "",
    bookmark: str | None = None,
    csrftoken: str | None = None,
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """Stream one page of results, rendering each card as soon as it is decoded.

    Invalid queries redirect to the landing page. Upstream failures before
    the first byte is sent yield a 502; failures after that end the page
    early (see ``StreamingDecoder``).
    """
    query = q.strip()
    if not 1 <= len(query) <= settings.query_max_length:
        logger.debug("Rejected search query", extra={"length": len(query)})
        return RedirectResponse("/", status_code=303)

    token = usable_csrftoken(csrftoken)
    if csrftoken and token is None:
        logger.debug("Dropped unusable csrftoken parameter")

    search_query = SearchQuery(query=query, bookmark=bookmark or None, csrftoken=token)
    upstream_request = build_search_request(client, search_query, settings.search_url)
    upstream = await send_streaming(client, upstream_request)

    try:
        decoder = StreamingDecoder(upstream.aiter_bytes())
        body = render_search_page(
            search_query,
            decoder,
            fresh_csrftoken=extract_csrftoken(upstream),
            reverse_enabled=settings.reverse_enabled,
            bookmarks_enabled=settings.bookmarks_enabled,
        )
        return UpstreamStreamingResponse(
            _close_after(body, upstream),
            upstream,
            media_type="text/html; charset=utf-8",
        )
    except BaseException:
        await upstream.aclose()
        raise


@router.get("/image_proxy")
async def image_proxy(
    url: str | None = None,
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
    pool: BufferPool = Depends(get_buffer_pool),
):
    """Fetch one image from the allow-listed host and stream it back."""
    target = validate_image_url(url, settings.image_host)

    deadline = asyncio.get_running_loop().time() + settings.image_fetch_timeout
    try:
        async with asyncio.timeout_at(deadline):
            upstream = await send_streaming(
                client, build_image_request(client, target), require_success=False
            )
    except TimeoutError as e:
        logger.warning("Image fetch timed out before headers", extra={"host": target.host})
        raise UpstreamError("Image fetch timed out") from e

    return UpstreamStreamingResponse(
        relay_body(upstream, pool, deadline),
        upstream,
        status_code=upstream.status_code,
        headers=safe_headers(upstream),
    )


@router.get("/revsearch")
async def revsearch(
    ref: str | None = None,
    settings: Settings = Depends(get_settings),
):
    """Redirect to the reverse image search service for a card's image."""
    if not settings.reverse_enabled:
        return PlainTextResponse("reverse disabled", status_code=404)
    if not ref:
        return PlainTextResponse("ref required", status_code=400)

    try:
        original = decode_reference(ref)
    except ValueError:
        logger.debug("Rejected reverse search reference")
        return PlainTextResponse("invalid ref", status_code=400)

    return RedirectResponse(build_redirect(original, settings.reverse_search_url), status_code=303)

