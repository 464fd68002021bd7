"""Glue between the bookmark store and HTTP cookies."""

from fastapi import Request, Response

from pinata.bookmarks.store import BookmarkStore
from pinata.config import Settings
from pinata.types.bookmarks import BookmarkList


def read_bookmarks(request: Request, store: BookmarkStore, settings: Settings) -> BookmarkList:
    """Bookmarks carried by the request's cookie (empty when absent or unreadable)."""
    if not store.enabled:
        return []
    return store.decode(request.cookies.get(settings.cookie_name))


def write_bookmarks(
    response: Response,
    entries: BookmarkList,
    store: BookmarkStore,
    settings: Settings,
) -> None:
    """Attach the re-encoded list to ``response``; deletes the cookie when the list is empty."""
    if not store.enabled:
        return

    normalized = store.normalize(entries)
    if not normalized:
        clear_bookmarks(response, settings)
        return

    value = store.encode(normalized)
    if value is None:
        return
    response.set_cookie(
        key=settings.cookie_name,
        value=value,
        max_age=settings.cookie_max_age,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
    )


def clear_bookmarks(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=settings.cookie_name,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
    )
