"""Type definitions for pinata.

This module re-exports all types from submodules for convenient imports.
"""

from pinata.types.api import HealthResponse
from pinata.types.bookmarks import BookmarkEntry, BookmarkKind, BookmarkList
from pinata.types.search import SearchQuery, SearchResultItem

__all__ = [
    # Search
    "SearchQuery",
    "SearchResultItem",
    # Bookmarks
    "BookmarkKind",
    "BookmarkEntry",
    "BookmarkList",
    # API
    "HealthResponse",
]
