"""Stateless bookmark persistence carried in an encrypted cookie."""

from pinata.bookmarks.store import BookmarkFormatError, BookmarkStore

__all__ = ["BookmarkFormatError", "BookmarkStore"]
