"""Encrypted, cookie-backed bookmark store.

The server keeps no bookmark state. A user's list lives in a single cookie:
JSON, sealed with AES-256-GCM under the configured key, nonce prepended,
encoded as URL-safe base64 without padding. Every mutation decodes the
presented cookie, applies the change, normalizes and re-encodes.

Cookies that fail to decode for any reason (bad base64, truncation, wrong
key, tampering, unknown schema) read as an empty list.
"""

import base64
import binascii
import json
import os
from collections.abc import Iterable
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from pydantic import TypeAdapter, ValidationError

from pinata.types.bookmarks import BookmarkEntry, BookmarkKind, BookmarkList
from pinata.utils.logging import setup_logger

logger = setup_logger(__name__)

NONCE_SIZE = 12

_entries_adapter = TypeAdapter(list[BookmarkEntry])
_legacy_adapter = TypeAdapter(list[str])


class BookmarkFormatError(ValueError):
    """Raised when a bookmark document is neither the current nor the legacy shape."""


def parse_document(raw: str | bytes) -> BookmarkList:
    """Parse a JSON bookmark document.

    Accepts the current shape (``[{"type": ..., "value": ...}, ...]``) and the
    legacy flat list of query strings, which is upgraded to ``QUERY`` entries.
    ``null`` reads as an empty list.

    Raises:
        BookmarkFormatError: If the document matches neither shape
    """
    try:
        data: Any = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise BookmarkFormatError(f"Bookmark document is not JSON: {e}") from e

    if data is None:
        return []

    try:
        return _entries_adapter.validate_python(data)
    except ValidationError:
        pass

    try:
        legacy = _legacy_adapter.validate_python(data)
    except ValidationError as e:
        raise BookmarkFormatError("Bookmark document has an unknown shape") from e

    return [BookmarkEntry(kind=BookmarkKind.QUERY, value=v) for v in legacy]


def dump_document(entries: BookmarkList, indent: int | None = None) -> str:
    """Serialize entries to the current JSON shape."""
    payload = [e.model_dump(mode="json", by_alias=True) for e in entries]
    if indent is None:
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
    return json.dumps(payload, indent=indent, ensure_ascii=False)


class BookmarkStore:
    """Encode/decode bookmark lists to and from a cookie value.

    A store built without a valid 32-byte key is disabled: ``decode`` always
    returns an empty list and ``encode`` returns None, so no cookie is ever
    written.
    """

    def __init__(
        self,
        key: bytes | None,
        max_entries: int = 30,
        max_value_length: int = 256,
    ):
        """Initialize the store.

        Args:
            key: 32-byte AES key, or None to disable the store
            max_entries: Cap on stored entries; oldest are dropped
            max_value_length: Values longer than this are truncated on write
        """
        self._aead = AESGCM(key) if key is not None and len(key) == 32 else None
        self.max_entries = max_entries
        self.max_value_length = max_value_length

    @property
    def enabled(self) -> bool:
        return self._aead is not None

    # ------------------------------------------------------------------
    # Wire format
    # ------------------------------------------------------------------

    def encode(self, entries: Iterable[BookmarkEntry]) -> str | None:
        """Normalize, encrypt and encode entries as a cookie value.

        Returns:
            The cookie value, or None when the store is disabled
        """
        if self._aead is None:
            return None

        plaintext = dump_document(self.normalize(entries)).encode("utf-8")
        nonce = os.urandom(NONCE_SIZE)
        sealed = nonce + self._aead.encrypt(nonce, plaintext, None)
        return base64.urlsafe_b64encode(sealed).rstrip(b"=").decode("ascii")

    def decode(self, cookie_value: str | None) -> BookmarkList:
        """Decrypt a cookie value into a bookmark list.

        Never raises: any failure yields an empty list.
        """
        if self._aead is None or not cookie_value:
            return []

        try:
            padded = cookie_value + "=" * (-len(cookie_value) % 4)
            data = base64.urlsafe_b64decode(padded.encode("ascii"))
        except (binascii.Error, ValueError, UnicodeEncodeError):
            logger.debug("Discarding bookmark cookie: bad base64")
            return []

        if len(data) < NONCE_SIZE:
            logger.debug("Discarding bookmark cookie: truncated", extra={"length": len(data)})
            return []

        nonce, ciphertext = data[:NONCE_SIZE], data[NONCE_SIZE:]
        try:
            plaintext = self._aead.decrypt(nonce, ciphertext, None)
        except InvalidTag:
            logger.debug("Discarding bookmark cookie: authentication failed")
            return []

        try:
            return parse_document(plaintext)
        except BookmarkFormatError as e:
            logger.debug("Discarding bookmark cookie: unknown schema", extra={"error": str(e)})
            return []

    # ------------------------------------------------------------------
    # Normalization and mutations (all pure, all return new lists)
    # ------------------------------------------------------------------

    def normalize(self, entries: Iterable[BookmarkEntry]) -> BookmarkList:
        """Trim, drop empties, truncate, dedupe by (kind, value) and cap.

        The first occurrence of an identity wins.
        """
        seen: set[tuple[BookmarkKind, str]] = set()
        out: BookmarkList = []
        for entry in entries:
            value = entry.value.strip()
            if not value:
                continue
            value = value[: self.max_value_length]
            normalized = BookmarkEntry(kind=entry.kind, value=value)
            if normalized.identity in seen:
                continue
            seen.add(normalized.identity)
            out.append(normalized)
            if len(out) >= self.max_entries:
                break
        return out

    def save(self, entries: BookmarkList, entry: BookmarkEntry) -> BookmarkList:
        """Move ``entry`` to the front, dropping any earlier copy of it."""
        rest = [e for e in entries if e.identity != entry.identity]
        return self.normalize([entry, *rest])

    def remove(self, entries: BookmarkList, entry: BookmarkEntry) -> BookmarkList:
        """Drop every entry with the same identity as ``entry``."""
        return self.normalize(e for e in entries if e.identity != entry.identity)

    def merge(self, imported: BookmarkList, existing: BookmarkList) -> BookmarkList:
        """Place normalized imported entries ahead of the existing ones."""
        return self.normalize([*self.normalize(imported), *existing])
