"""Bookmark mutation, export and import endpoints.

Every mutation is a plain form POST answered with a 303 redirect so the
pages work without client-side script. The bookmark list is rebuilt from
the presented cookie on every request and written back as a new cookie.
"""

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import PlainTextResponse, RedirectResponse, Response
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException
from starlette.types import Message

from pinata.api.dependencies import get_bookmark_store, get_settings
from pinata.bookmarks.cookies import read_bookmarks, write_bookmarks
from pinata.bookmarks.store import BookmarkFormatError, BookmarkStore, dump_document, parse_document
from pinata.config import Settings
from pinata.consts import EXPORT_FILENAME
from pinata.types.bookmarks import BookmarkEntry, BookmarkKind
from pinata.utils.logging import setup_logger

logger = setup_logger(__name__)

router = APIRouter(tags=["bookmarks"])

_KINDS = {k.value for k in BookmarkKind}


def safe_next(target: str | None) -> str:
    """Local redirect target; anything that could leave the site becomes ``/``."""
    if not target or not target.startswith("/") or target.startswith("//") or "\\" in target:
        return "/"
    return target


def _redirect(target: str | None = "/") -> RedirectResponse:
    return RedirectResponse(safe_next(target), status_code=303)


@router.post("/bookmark")
async def bookmark_query(
    request: Request,
    q: str = Form(default=""),
    next_path: str = Form(default="/", alias="next"),
    store: BookmarkStore = Depends(get_bookmark_store),
    settings: Settings = Depends(get_settings),
):
    """Save a search query (move-to-front)."""
    response = _redirect(next_path)
    query = q.strip()
    if not store.enabled or not 1 <= len(query) <= settings.query_max_length:
        return response

    entries = read_bookmarks(request, store, settings)
    entry = BookmarkEntry(kind=BookmarkKind.QUERY, value=query)
    write_bookmarks(response, store.save(entries, entry), store, settings)
    return response


@router.post("/bookmark_image")
async def bookmark_image(
    request: Request,
    url: str = Form(default=""),
    next_path: str = Form(default="/", alias="next"),
    store: BookmarkStore = Depends(get_bookmark_store),
    settings: Settings = Depends(get_settings),
):
    """Save an image URL (move-to-front)."""
    response = _redirect(next_path)
    image_url = url.strip()
    if not store.enabled or not image_url.startswith(("http://", "https://")):
        return response

    entries = read_bookmarks(request, store, settings)
    entry = BookmarkEntry(kind=BookmarkKind.IMAGE, value=image_url)
    write_bookmarks(response, store.save(entries, entry), store, settings)
    return response


@router.post("/bookmark_remove")
async def bookmark_remove(
    request: Request,
    kind: str = Form(default="", alias="type"),
    value: str = Form(default=""),
    next_path: str = Form(default="/", alias="next"),
    store: BookmarkStore = Depends(get_bookmark_store),
    settings: Settings = Depends(get_settings),
):
    """Remove every bookmark matching (type, value); the cookie is deleted once empty."""
    response = _redirect(next_path)
    if not store.enabled or kind not in _KINDS or not value:
        return response

    entries = read_bookmarks(request, store, settings)
    entry = BookmarkEntry(kind=kind, value=value)
    write_bookmarks(response, store.remove(entries, entry), store, settings)
    return response


@router.get("/bookmarks/export")
async def export_bookmarks(
    request: Request,
    store: BookmarkStore = Depends(get_bookmark_store),
    settings: Settings = Depends(get_settings),
):
    """Download the decrypted bookmark list as JSON."""
    if not store.enabled:
        return PlainTextResponse("bookmarks disabled", status_code=404)

    entries = read_bookmarks(request, store, settings)
    return Response(
        content=dump_document(entries, indent=2),
        media_type="application/json; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


async def _read_bounded(request: Request, limit: int) -> bytes | None:
    """Request body, or None as soon as more than ``limit`` bytes have arrived."""
    body = bytearray()
    async for chunk in request.stream():
        body += chunk
        if len(body) > limit:
            return None
    return bytes(body)


def _replayed(request: Request, body: bytes) -> Request:
    """A copy of ``request`` whose body is the already-received ``body``."""

    async def receive() -> Message:
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(request.scope, receive=receive)


@router.post("/bookmarks/import")
async def import_bookmarks(
    request: Request,
    store: BookmarkStore = Depends(get_bookmark_store),
    settings: Settings = Depends(get_settings),
):
    """Merge an uploaded JSON document (current or legacy shape) ahead of the saved list.

    The body is counted as it arrives and dropped once it passes
    ``import_max_bytes``, with or without a ``Content-Length`` header; the
    multipart parser only ever sees a body under the limit.
    """
    response = _redirect("/")
    if not store.enabled:
        return response

    limit = settings.import_max_bytes
    declared = request.headers.get("content-length")
    if declared is not None and (not declared.isdigit() or int(declared) > limit):
        logger.info("Rejected bookmark import over size limit", extra={"content_length": declared})
        return response

    # the multipart envelope counts toward the limit
    body = await _read_bounded(request, limit)
    if body is None:
        logger.info("Rejected bookmark import over size limit", extra={"limit": limit})
        return response

    try:
        async with _replayed(request, body).form(max_files=1, max_fields=8) as form:
            upload = form.get("file")
            if not isinstance(upload, UploadFile):
                logger.debug("Bookmark import without a file part")
                return response
            raw = await upload.read()
    except (MultiPartException, HTTPException) as e:
        logger.info("Rejected malformed bookmark import", extra={"error": str(e)})
        return response

    try:
        imported = parse_document(raw)
    except BookmarkFormatError as e:
        logger.info("Rejected bookmark import", extra={"error": str(e)})
        return response

    existing = read_bookmarks(request, store, settings)
    write_bookmarks(response, store.merge(imported, existing), store, settings)
    logger.info("Imported bookmarks", extra={"imported": len(imported), "existing": len(existing)})
    return response
