"""Landing page rendering."""

from html import escape

from pinata.streaming.renderer import proxy_path, search_path
from pinata.types.bookmarks import BookmarkEntry, BookmarkKind, BookmarkList
from pinata.web.layout import hidden_input, page_end, page_start


def _bookmark_pill(entry: BookmarkEntry) -> str:
    href = search_path(entry.value) if entry.kind is BookmarkKind.QUERY else proxy_path(entry.value)
    return (
        f'<span class="bookmark-pill"><a href="{escape(href)}">{escape(entry.value)}</a>'
        '<form method="post" action="/bookmark_remove">'
        + hidden_input("type", entry.kind.value)
        + hidden_input("value", entry.value)
        + hidden_input("next", "/")
        + '<button class="bookmark-remove-btn" type="submit" title="Remove">&#10005;</button>'
        "</form></span>"
    )


def render_index(entries: BookmarkList, bookmarks_enabled: bool, query_max_length: int = 64) -> str:
    """Search form plus, when the store is enabled, saved bookmarks with export/import forms."""
    parts = [
        page_start("Pinata - Search"),
        '<div class="header"><a class="brand" href="/">Pinata</a></div>',
        '<div class="intro">Search images from Pinterest. Submit a search to view results.</div>',
        '<form class="search-block" method="get" action="/search">'
        f'<input type="text" name="q" placeholder="Search Image" required maxlength="{query_max_length}">'
        '<button type="submit">Search</button></form>',
    ]

    if bookmarks_enabled:
        parts.append('<div class="bookmarks"><div class="bookmarks-title">Saved bookmarks</div>')
        parts.append('<div class="bookmark-list">')
        parts.extend(_bookmark_pill(e) for e in entries)
        parts.append("</div>")
        parts.append(
            '<div class="export-form">'
            '<form method="get" action="/bookmarks/export">'
            '<button type="submit" class="btn-save">Export JSON</button></form>'
            '<form method="post" action="/bookmarks/import" enctype="multipart/form-data">'
            '<input type="file" name="file" accept="application/json" required>'
            '<button type="submit" class="btn-save">Import JSON</button></form>'
            "</div></div>"
        )

    parts.append(page_end())
    return "".join(parts)
