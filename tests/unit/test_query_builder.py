"""Tests for upstream search request construction."""

import json
from unittest.mock import patch
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from pinata.consts import PWS_HANDLER_HEADER, PWS_HANDLER_VALUE
from pinata.tools.pinterest_search import (
    QueryBuildError,
    build_payload,
    build_search_request,
    extract_csrftoken,
    usable_csrftoken,
)
from pinata.types.search import SearchQuery

SEARCH_URL = "https://www.pinterest.com/resource/BaseSearchResource/get/"


@pytest.fixture
def client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=httpx.Timeout(5.0))


def _data_param(request: httpx.Request) -> dict:
    if request.method == "GET":
        values = parse_qs(urlsplit(str(request.url)).query)["data"]
    else:
        values = parse_qs(request.content.decode("ascii"))["data"]
    assert len(values) == 1
    return json.loads(values[0])


class TestBuildSearchRequest:
    """First page vs. continuation page request shapes."""

    def test_first_page_is_get_with_data_param(self, client: httpx.AsyncClient):
        request = build_search_request(client, SearchQuery(query="red cats"), SEARCH_URL)

        assert request.method == "GET"
        assert str(request.url).startswith(SEARCH_URL + "?data=")
        assert _data_param(request) == {"options": {"query": "red cats"}}
        assert request.content == b""

    def test_continuation_is_form_post_with_cursor(self, client: httpx.AsyncClient):
        search = SearchQuery(query="red cats", bookmark="Y2JVSG81V2s9PXxhYmM=")

        request = build_search_request(client, search, SEARCH_URL)

        assert request.method == "POST"
        assert str(request.url) == SEARCH_URL
        assert request.headers["content-type"] == "application/x-www-form-urlencoded"
        assert _data_param(request) == {
            "options": {"query": "red cats", "bookmarks": ["Y2JVSG81V2s9PXxhYmM="]}
        }

    def test_routing_header_always_present(self, client: httpx.AsyncClient):
        for search in (SearchQuery(query="a"), SearchQuery(query="a", bookmark="c")):
            request = build_search_request(client, search, SEARCH_URL)
            assert request.headers[PWS_HANDLER_HEADER] == PWS_HANDLER_VALUE

    def test_csrftoken_sent_as_header_and_cookie(self, client: httpx.AsyncClient):
        search = SearchQuery(query="a", bookmark="c", csrftoken="tok123")

        request = build_search_request(client, search, SEARCH_URL)

        assert request.headers["x-csrftoken"] == "tok123"
        assert request.headers["cookie"] == "csrftoken=tok123"

    def test_no_csrftoken_no_cookie(self, client: httpx.AsyncClient):
        request = build_search_request(client, SearchQuery(query="a"), SEARCH_URL)

        assert "x-csrftoken" not in request.headers
        assert "cookie" not in request.headers

    def test_request_inherits_client_timeout(self, client: httpx.AsyncClient):
        request = build_search_request(client, SearchQuery(query="a"), SEARCH_URL)

        assert request.extensions["timeout"]["read"] == 5.0

    def test_unicode_query_round_trips(self, client: httpx.AsyncClient):
        request = build_search_request(client, SearchQuery(query="café & crème"), SEARCH_URL)

        assert _data_param(request)["options"]["query"] == "café & crème"


class TestBuildPayload:
    def test_compact_json(self):
        assert build_payload("cats") == '{"options":{"query":"cats"}}'

    def test_serialization_failure_raises(self):
        with patch("pinata.tools.pinterest_search.json.dumps", side_effect=TypeError("boom")):
            with pytest.raises(QueryBuildError, match="Failed to encode search payload"):
                build_payload("cats")


class TestExtractCsrftoken:
    def _response(self, set_cookie: str | None) -> httpx.Response:
        headers = {"set-cookie": set_cookie} if set_cookie else {}
        return httpx.Response(
            200,
            headers=headers,
            request=httpx.Request("GET", SEARCH_URL),
        )

    def test_reads_fresh_token(self):
        assert extract_csrftoken(self._response("csrftoken=fresh; Path=/")) == "fresh"

    def test_name_is_case_insensitive(self):
        assert extract_csrftoken(self._response("CSRFToken=fresh; Path=/")) == "fresh"

    def test_missing_token(self):
        assert extract_csrftoken(self._response("_pinterest_sess=abc; Path=/")) is None
        assert extract_csrftoken(self._response(None)) is None


class TestUsableCsrftoken:
    def test_plain_token_kept(self):
        assert usable_csrftoken("AbC123-_.xyz") == "AbC123-_.xyz"

    @pytest.mark.parametrize("token", [None, "", "été", "a;b", "a b", "a,b", 'a"b', "tab\tbed", "nl\n"])
    def test_unsendable_token_dropped(self, token):
        assert usable_csrftoken(token) is None
