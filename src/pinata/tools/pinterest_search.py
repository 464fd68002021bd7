"""Upstream request construction for the Pinterest search resource."""

import json
from urllib.parse import urlencode

import httpx

from pinata.consts import CSRF_COOKIE_NAME, CSRF_HEADER, PWS_HANDLER_HEADER, PWS_HANDLER_VALUE
from pinata.types.search import SearchQuery

_TOKEN_FORBIDDEN = frozenset(" ;,\"\\")


class QueryBuildError(Exception):
    """Raised when the upstream payload cannot be serialized (surfaced as a 500)."""


def build_payload(query: str, cursor: str | None = None) -> str:
    """Serialize the ``data`` parameter the search resource expects.

    Raises:
        QueryBuildError: If the payload cannot be serialized
    """
    options: dict[str, object] = {"query": query}
    if cursor:
        options["bookmarks"] = [cursor]
    try:
        return json.dumps({"options": options}, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise QueryBuildError(f"Failed to encode search payload: {e}") from e


def build_search_request(
    client: httpx.AsyncClient,
    search: SearchQuery,
    search_url: str,
) -> httpx.Request:
    """Build the upstream request for one page of results.

    The first page is a GET with ``data`` in the query string. Continuation
    pages must be a form-encoded POST carrying the cursor; the resource
    ignores the cursor on GET.

    Args:
        client: Shared client; the request inherits its timeouts
        search: Query plus optional cursor and anti-forgery token
        search_url: Upstream resource URL

    Returns:
        Unsent ``httpx.Request``

    Raises:
        QueryBuildError: If the payload cannot be serialized
    """
    data = build_payload(search.query, search.bookmark)
    headers = {PWS_HANDLER_HEADER: PWS_HANDLER_VALUE}
    if search.csrftoken:
        headers[CSRF_HEADER] = search.csrftoken
        headers["Cookie"] = f"{CSRF_COOKIE_NAME}={search.csrftoken}"

    if not search.bookmark:
        return client.build_request(
            "GET", f"{search_url}?{urlencode({'data': data})}", headers=headers
        )

    headers["Content-Type"] = "application/x-www-form-urlencoded"
    return client.build_request(
        "POST",
        search_url,
        headers=headers,
        content=urlencode({"data": data}).encode("ascii"),
    )


def extract_csrftoken(response: httpx.Response) -> str | None:
    """Fresh anti-forgery token from the provider's Set-Cookie headers, if any."""
    for cookie in response.cookies.jar:
        if cookie.name.lower() == CSRF_COOKIE_NAME and cookie.value:
            return cookie.value
    return None


def usable_csrftoken(token: str | None) -> str | None:
    """Return ``token`` if it can be sent unchanged as a header and cookie value, else None.

    Tokens arrive from the browser's query string, so anything with
    non-ASCII, control or cookie-delimiting characters is dropped.
    """
    if not token or not token.isascii() or not token.isprintable():
        return None
    if any(c in _TOKEN_FORBIDDEN for c in token):
        return None
    return token
