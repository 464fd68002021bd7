"""Incremental decoder for the upstream search response.

The response is large and deeply nested, and the page only needs two things
from it: the ``images.orig.url`` of each entry in the ``results`` array and
the ``bookmark`` pagination cursor. The body is consumed as an ijson event
stream over the live HTTP byte stream; unmodeled fields are skipped event by
event and never built into objects.

A malformed body stops decoding where it breaks. Items already yielded stay
on the page and the page is finished normally; the trailing results are
lost. The decoder records this in ``truncated`` and logs it instead of
failing the request, since a hard error would also drop the pagination link
the user already sees partial results for.
"""

from collections.abc import AsyncIterator

import httpx
import ijson

from pinata.types.search import SearchResultItem
from pinata.utils.logging import log_with_context, setup_logger

logger = setup_logger(__name__)

RESULTS_KEY = "results"
CURSOR_KEY = "bookmark"
URL_PATH = "images.orig.url"


class AsyncByteReader:
    """Async file-like view (``read(n)``) over an iterator of byte chunks.

    Holds at most one upstream chunk at a time.
    """

    def __init__(self, chunks: AsyncIterator[bytes]):
        self._chunks = chunks
        self._pending = b""
        self.bytes_read = 0

    async def read(self, size: int = -1) -> bytes:
        while not self._pending:
            try:
                self._pending = await anext(self._chunks)
            except StopAsyncIteration:
                return b""

        if size < 0 or size >= len(self._pending):
            out, self._pending = self._pending, b""
        else:
            out, self._pending = self._pending[:size], self._pending[size:]
        self.bytes_read += len(out)
        return out


def _last_segment(prefix: str) -> str:
    return prefix.rpartition(".")[2]


class StreamingDecoder:
    """Pull-based decoder: iterate ``items()``; read ``cursor`` once it is exhausted.

    Both ``results`` arrays and ``bookmark`` strings are recognised at any
    depth, since the provider nests them under its response envelope. Keys
    inside a result item are never mistaken for either.
    """

    def __init__(self, chunks: AsyncIterator[bytes]):
        self._reader = AsyncByteReader(chunks)
        self.cursor: str | None = None
        self.truncated = False
        self.count = 0

    async def items(self) -> AsyncIterator[SearchResultItem]:
        """Yield one ``SearchResultItem`` per result with a non-blank URL, in order."""
        results_prefix: str | None = None
        item_prefix = url_prefix = ""
        url: str | None = None

        try:
            async for prefix, event, value in ijson.parse_async(self._reader):
                if results_prefix is None:
                    segment = _last_segment(prefix)
                    if event == "start_array" and segment == RESULTS_KEY:
                        results_prefix = prefix
                        item_prefix = f"{prefix}.item"
                        url_prefix = f"{item_prefix}.{URL_PATH}"
                    elif event == "string" and segment == CURSOR_KEY:
                        self.cursor = value
                    continue

                if prefix == item_prefix and event == "start_map":
                    url = None
                elif prefix == url_prefix and event == "string":
                    url = value
                elif prefix == item_prefix and event == "end_map":
                    cleaned = (url or "").strip()
                    url = None
                    if cleaned:
                        self.count += 1
                        yield SearchResultItem(url=cleaned)
                elif prefix == results_prefix and event == "end_array":
                    results_prefix = None
        except (ijson.JSONError, UnicodeDecodeError) as e:
            self.truncated = True
            log_with_context(
                logger,
                "warning",
                "Malformed upstream JSON; ending result stream early",
                error=str(e),
                items=self.count,
                bytes_read=self._reader.bytes_read,
            )
        except httpx.HTTPError as e:
            self.truncated = True
            log_with_context(
                logger,
                "warning",
                "Upstream body read failed; ending result stream early",
                error=repr(e),
                items=self.count,
                bytes_read=self._reader.bytes_read,
            )
        else:
            logger.debug(
                "Upstream stream decoded",
                extra={"items": self.count, "has_cursor": bool(self.cursor)},
            )
