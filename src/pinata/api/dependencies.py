"""Request-scoped accessors for the process-wide objects built in the app factory."""

import httpx
from fastapi import Request

from pinata.bookmarks.store import BookmarkStore
from pinata.config import Settings
from pinata.utils.buffers import BufferPool


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_bookmark_store(request: Request) -> BookmarkStore:
    return request.app.state.bookmark_store


def get_buffer_pool(request: Request) -> BufferPool:
    return request.app.state.buffer_pool
