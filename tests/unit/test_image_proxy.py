"""Tests for the image proxy guard and body relay."""

import asyncio

import httpx
import pytest

from pinata.tools.image_proxy import ImageProxyError, relay_body, safe_headers, validate_image_url
from pinata.utils.buffers import BufferPool

HOST = "i.pinimg.com"


class TestValidateImageUrl:
    def test_allowed_url(self):
        url = validate_image_url("https://i.pinimg.com/originals/x.jpg", HOST)

        assert url.host == HOST
        assert url.path == "/originals/x.jpg"

    def test_host_match_is_case_insensitive(self):
        assert validate_image_url("https://I.PinImg.com/x.jpg", HOST).host == HOST

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_missing_url_is_400(self, raw):
        with pytest.raises(ImageProxyError) as exc_info:
            validate_image_url(raw, HOST)
        assert exc_info.value.status_code == 400

    def test_bad_port_is_400(self):
        with pytest.raises(ImageProxyError) as exc_info:
            validate_image_url("https://i.pinimg.com:99999/x.jpg", HOST)
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize(
        "raw",
        [
            "http://i.pinimg.com/x.jpg",
            "https://evil.example/x.jpg",
            "https://i.pinimg.com.evil.example/x.jpg",
            "https://i.pinimg.com@evil.example/x.jpg",
            "https://i.pinimg.com:8443/x.jpg",
            "ftp://i.pinimg.com/x.jpg",
            "//i.pinimg.com/x.jpg",
            "file:///etc/passwd",
        ],
    )
    def test_disallowed_urls_are_403(self, raw: str):
        with pytest.raises(ImageProxyError) as exc_info:
            validate_image_url(raw, HOST)
        assert exc_info.value.status_code == 403


class SlowStream(httpx.AsyncByteStream):
    async def __aiter__(self):
        yield b"abc"
        await asyncio.sleep(5)
        yield b"def"


class ChunkedStream(httpx.AsyncByteStream):
    def __init__(self, payload: bytes, chunk_size: int):
        self.payload = payload
        self.chunk_size = chunk_size

    async def __aiter__(self):
        for offset in range(0, len(self.payload), self.chunk_size):
            yield self.payload[offset : offset + self.chunk_size]


class BrokenStream(httpx.AsyncByteStream):
    async def __aiter__(self):
        yield b"abc"
        yield b"def"
        raise httpx.ReadError("connection reset")


class TestRelayBody:
    def _response(self, **kwargs) -> httpx.Response:
        return httpx.Response(200, request=httpx.Request("GET", f"https://{HOST}/x.jpg"), **kwargs)

    @pytest.mark.asyncio
    async def test_relays_body_in_buffer_sized_slices(self):
        payload = bytes(range(256)) * 40
        pool = BufferPool(size=1024, max_idle=2)
        deadline = asyncio.get_running_loop().time() + 5

        pieces = [p async for p in relay_body(self._response(content=payload), pool, deadline)]

        assert b"".join(pieces) == payload
        assert max(len(p) for p in pieces) <= 1024
        assert pool.idle == 1

    @pytest.mark.asyncio
    async def test_small_upstream_chunks_are_written_buffer_sized(self):
        payload = bytes(range(100)) * 100
        pool = BufferPool(size=1024, max_idle=2)
        deadline = asyncio.get_running_loop().time() + 5
        response = self._response(stream=ChunkedStream(payload, chunk_size=100))

        pieces = [p async for p in relay_body(response, pool, deadline)]

        assert b"".join(pieces) == payload
        assert [len(p) for p in pieces] == [1024] * 9 + [784]
        assert response.is_closed

    @pytest.mark.asyncio
    async def test_read_failure_flushes_buffered_bytes(self):
        pool = BufferPool(size=1024)
        deadline = asyncio.get_running_loop().time() + 5
        response = self._response(stream=BrokenStream())

        pieces = [p async for p in relay_body(response, pool, deadline)]

        assert pieces == [b"abcdef"]
        assert response.is_closed
        assert pool.idle == 1

    @pytest.mark.asyncio
    async def test_deadline_ends_body_early(self):
        pool = BufferPool(size=1024)
        deadline = asyncio.get_running_loop().time() + 0.05
        response = self._response(stream=SlowStream())

        pieces = [p async for p in relay_body(response, pool, deadline)]

        assert pieces == [b"abc"]
        assert response.is_closed

    def test_safe_headers_only(self):
        response = self._response(
            headers={
                "Content-Type": "image/jpeg",
                "Cache-Control": "max-age=31536000",
                "Set-Cookie": "tracker=1",
                "X-Amz-Id": "abc",
            }
        )

        assert safe_headers(response) == {
            "content-type": "image/jpeg",
            "cache-control": "max-age=31536000",
        }
