"""Incremental HTML rendering of search results.

``render_search_page`` is an async generator of HTML fragments. Each
fragment becomes its own body message on the connection, so the browser
paints cards while the upstream response is still arriving. Nothing is
buffered: the next result is not decoded until the previous card has been
handed to the server, and a slow client slows the decoder down with it.
"""

from collections.abc import AsyncIterator
from html import escape
from urllib.parse import urlencode

from pinata.streaming.decoder import StreamingDecoder
from pinata.tools.reverse_search import encode_reference
from pinata.types.search import SearchQuery, SearchResultItem
from pinata.web.layout import hidden_input, page_end, page_start


def search_path(query: str) -> str:
    return f"/search?{urlencode({'q': query})}"


def proxy_path(url: str) -> str:
    return f"/image_proxy?{urlencode({'url': url})}"


def next_page_path(query: str, cursor: str, csrftoken: str | None) -> str:
    """Link that continues the result set; the cursor and token are passed back verbatim."""
    params = {"q": query, "bookmark": cursor}
    if csrftoken:
        params["csrftoken"] = csrftoken
    return f"/search?{urlencode(params)}"


def render_header(query: str, bookmarks_enabled: bool) -> str:
    """Page opening: inline search box, optional save-search form, results container."""
    parts = [
        page_start(f"{query} - Pinata"),
        '<div class="header"><a class="brand" href="/">Pinata</a><div class="search-box">',
        '<form class="search-inline" method="get" action="/search">'
        f'<input type="text" name="q" value="{escape(query)}" maxlength="64">'
        '<button type="submit">Search</button></form>',
    ]
    if bookmarks_enabled:
        parts.append(
            '<form method="post" action="/bookmark">'
            + hidden_input("q", query)
            + hidden_input("next", search_path(query))
            + '<button class="btn-save" type="submit">Save</button></form>'
        )
    parts.append("</div></div>")
    parts.append(f'<h2 class="results-title">Results for "{escape(query)}"</h2>')
    parts.append('<div class="img-container">')
    return "".join(parts)


def render_card(
    item: SearchResultItem,
    query: str,
    reverse_enabled: bool,
    bookmarks_enabled: bool,
) -> str:
    """One self-contained result card; the image is always served through the proxy."""
    src = escape(proxy_path(item.url))
    parts = [
        '<div class="card">',
        f'<a href="{src}"><img loading="lazy" src="{src}" alt="image"></a>',
        '<div class="card-controls">',
    ]
    if reverse_enabled:
        ref = escape(f"/revsearch?{urlencode({'ref': encode_reference(item.url)})}")
        parts.append(
            f'<a class="magnifier" href="{ref}" title="Reverse image search" target="_blank">&#128269;</a>'
        )
    if bookmarks_enabled:
        parts.append(
            '<form method="post" action="/bookmark_image">'
            + hidden_input("url", item.url)
            + hidden_input("next", search_path(query))
            + '<button class="btn-save-mini" type="submit" title="Save image">&#10084;</button></form>'
        )
    parts.append("</div></div>")
    return "".join(parts)


def render_footer(query: str, cursor: str | None, csrftoken: str | None) -> str:
    """Close the results container; add a next-page link only when a cursor was issued."""
    parts = ["</div>"]
    if cursor:
        href = escape(next_page_path(query, cursor, csrftoken))
        parts.append(f'<div class="pagination"><a href="{href}">Next page</a></div>')
    parts.append(page_end())
    return "".join(parts)


async def render_search_page(
    search: SearchQuery,
    decoder: StreamingDecoder,
    fresh_csrftoken: str | None,
    reverse_enabled: bool,
    bookmarks_enabled: bool,
) -> AsyncIterator[str]:
    """Yield the results page fragment by fragment: header, one card per result, footer.

    Args:
        search: The validated request, including the token it arrived with
        decoder: Decoder positioned over the live upstream body
        fresh_csrftoken: Token the provider issued on this response, if any;
            preferred over the incoming one for the next-page link
        reverse_enabled: Render reverse search links
        bookmarks_enabled: Render save forms
    """
    yield render_header(search.query, bookmarks_enabled)

    async for item in decoder.items():
        yield render_card(item, search.query, reverse_enabled, bookmarks_enabled)

    yield render_footer(search.query, decoder.cursor, fresh_csrftoken or search.csrftoken)
