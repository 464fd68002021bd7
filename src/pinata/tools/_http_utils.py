"""Shared outbound HTTP client and upstream error types."""

from http.cookiejar import CookieJar, DefaultCookiePolicy

import httpx

from pinata.config import Settings
from pinata.utils.logging import setup_logger

logger = setup_logger(__name__)

BROWSER_USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64; rv:145.0) Gecko/20100101 Firefox/145.0"


class UpstreamError(Exception):
    """Raised when an upstream call fails (network error or non-2xx status).

    Surfaced to the browser as a 502; never retried.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def _isolated_cookie_jar() -> CookieJar:
    """A jar that refuses every cookie.

    The client is shared by all requests, so provider cookies must never be
    stored on it. Tokens the provider issues are read off each response and
    threaded through the page instead.
    """
    return CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))


def create_http_client(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Build the pooled client used for every upstream, provider and image fetch.

    Args:
        settings: Application settings (timeouts and pool limits)
        transport: Optional transport override (tests pass ``httpx.MockTransport``)

    Returns:
        A configured ``httpx.AsyncClient``; the caller owns closing it
    """
    timeout = httpx.Timeout(
        connect=settings.connect_timeout,
        read=settings.read_timeout,
        write=settings.read_timeout,
        pool=settings.connect_timeout,
    )
    limits = httpx.Limits(
        max_connections=settings.max_connections,
        max_keepalive_connections=settings.max_keepalive_connections,
        keepalive_expiry=settings.keepalive_expiry,
    )
    logger.info(
        "Creating outbound HTTP client",
        extra={
            "max_connections": settings.max_connections,
            "max_keepalive": settings.max_keepalive_connections,
        },
    )
    return httpx.AsyncClient(
        timeout=timeout,
        limits=limits,
        cookies=_isolated_cookie_jar(),
        follow_redirects=False,
        transport=transport,
    )


def _describe(request: httpx.Request) -> str:
    # Query strings carry user searches and tokens; keep them out of logs
    return f"{request.method} {request.url.scheme}://{request.url.host}{request.url.path}"


async def send_streaming(
    client: httpx.AsyncClient,
    request: httpx.Request,
    require_success: bool = True,
) -> httpx.Response:
    """Send ``request`` and return the response with its body still unread.

    Args:
        client: Shared outbound client
        request: Prepared request
        require_success: Treat non-2xx statuses as failures

    Raises:
        UpstreamError: On transport failure, or a non-2xx status when
            ``require_success`` is set. The response is closed before raising.
    """
    try:
        response = await client.send(request, stream=True)
    except httpx.HTTPError as e:
        logger.error(
            "Upstream request failed",
            extra={"url": _describe(request), "error": repr(e)},
        )
        raise UpstreamError(f"Upstream request failed: {e!r}") from e

    if require_success and not response.is_success:
        await response.aclose()
        logger.warning(
            "Upstream returned an error status",
            extra={"url": _describe(request), "status": response.status_code},
        )
        raise UpstreamError(
            f"Upstream returned status {response.status_code}",
            status_code=response.status_code,
        )

    return response
