"""Guarded image proxy: the browser never talks to the image host directly."""

import asyncio
from collections.abc import AsyncIterator
from urllib.parse import urlsplit

import httpx

from pinata.consts import PROXY_SAFE_HEADERS
from pinata.tools._http_utils import BROWSER_USER_AGENT
from pinata.utils.buffers import BufferPool
from pinata.utils.logging import setup_logger

logger = setup_logger(__name__)


class ImageProxyError(Exception):
    """Rejected proxy request; ``status_code`` is the 4xx to return."""

    def __init__(self, status_code: int, detail: str):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


def validate_image_url(raw: str | None, allowed_host: str) -> httpx.URL:
    """Check that ``raw`` is an https URL on ``allowed_host``.

    Args:
        raw: URL as received from the browser
        allowed_host: The only host the proxy fetches from

    Returns:
        Parsed URL safe to fetch

    Raises:
        ImageProxyError: 400 for missing or unparseable input, 403 for a
            scheme, host or port outside the allow-list
    """
    if not raw or not raw.strip():
        raise ImageProxyError(400, "url required")

    try:
        parts = urlsplit(raw.strip())
        port = parts.port
    except ValueError as e:
        raise ImageProxyError(400, "invalid url") from e

    if parts.scheme.lower() != "https":
        raise ImageProxyError(403, "proxy allowed for https only")
    if (parts.hostname or "") != allowed_host.lower():
        raise ImageProxyError(403, f"proxy allowed only for {allowed_host}")
    if port not in (None, 443):
        raise ImageProxyError(403, "proxy allowed on the default port only")

    try:
        url = httpx.URL(raw.strip())
    except httpx.InvalidURL as e:
        raise ImageProxyError(400, "invalid url") from e

    # Both parsers must agree on where the request goes
    if url.scheme != "https" or url.host != allowed_host.lower():
        raise ImageProxyError(403, f"proxy allowed only for {allowed_host}")

    return url


def build_image_request(client: httpx.AsyncClient, url: httpx.URL) -> httpx.Request:
    return client.build_request("GET", url, headers={"User-Agent": BROWSER_USER_AGENT})


def safe_headers(response: httpx.Response) -> dict[str, str]:
    """The subset of image host headers passed on to the browser."""
    return {name: response.headers[name] for name in PROXY_SAFE_HEADERS if name in response.headers}


async def _upstream_chunks(response: httpx.Response, deadline: float) -> AsyncIterator[bytes]:
    """Upstream body chunks until EOF, the deadline, or a read failure."""
    chunks = response.aiter_bytes()
    while True:
        try:
            async with asyncio.timeout_at(deadline):
                chunk = await anext(chunks)
        except StopAsyncIteration:
            return
        except TimeoutError:
            logger.warning("Image fetch exceeded its deadline", extra={"host": response.url.host})
            return
        except httpx.HTTPError as e:
            logger.warning(
                "Image body read failed",
                extra={"host": response.url.host, "error": repr(e)},
            )
            return
        yield chunk


async def relay_body(
    response: httpx.Response,
    pool: BufferPool,
    deadline: float,
) -> AsyncIterator[bytes]:
    """Stream the image body through a pooled buffer until ``deadline`` (event loop time).

    Upstream chunks are packed into the borrowed buffer and written out one
    full buffer at a time, so the browser sees buffer-sized writes however
    the image host frames its body. Whatever is buffered when the body ends,
    or when the deadline or a read failure cuts it short, is flushed last;
    the status line is already sent by then. The upstream response is
    always closed.
    """
    try:
        with pool.borrow() as buffer, memoryview(buffer) as view:
            size = len(buffer)
            filled = 0
            async for chunk in _upstream_chunks(response, deadline):
                source = memoryview(chunk)
                offset = 0
                while offset < len(source):
                    n = min(size - filled, len(source) - offset)
                    view[filled : filled + n] = source[offset : offset + n]
                    filled += n
                    offset += n
                    if filled == size:
                        yield bytes(view)
                        filled = 0
            if filled:
                yield bytes(view[:filled])
    finally:
        await response.aclose()
