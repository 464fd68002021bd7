"""Root conftest for test suite - adds src to Python path and shared fixtures."""

import base64
import json
import sys
from pathlib import Path

import pytest

# Add src to Python path so the package imports without installation
src_root = Path(__file__).parent.parent / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))

from pinata.bookmarks.store import BookmarkStore  # noqa: E402
from pinata.config import Settings  # noqa: E402

TEST_KEY = bytes(range(32))


@pytest.fixture
def bookmark_key() -> bytes:
    return TEST_KEY


@pytest.fixture
def settings() -> Settings:
    """Settings with bookmarks and reverse search enabled."""
    return Settings(
        _env_file=None,
        bookmark_key=base64.b64encode(TEST_KEY).decode("ascii"),
        disable_reverse=False,
    )


@pytest.fixture
def store() -> BookmarkStore:
    return BookmarkStore(TEST_KEY, max_entries=30, max_value_length=256)


def _make_result(url: str, **extra) -> dict:
    """One upstream result item in the provider's shape."""
    return {
        "id": extra.pop("id", "1"),
        "title": extra.pop("title", "pin"),
        "images": {
            "236x": {"url": "https://i.pinimg.com/236x/small.jpg", "width": 236},
            "orig": {"url": url, "width": 1200, "height": 1600},
        },
        **extra,
    }


def _make_search_body(urls: list[str], cursor: str | None = "cursorX", nested: bool = True) -> bytes:
    """Upstream response body; ``nested`` wraps it in the provider's envelope."""
    data = {"results": [_make_result(u, id=str(i)) for i, u in enumerate(urls)]}
    if not nested:
        data["bookmark"] = cursor
        return json.dumps(data).encode("utf-8")
    return json.dumps(
        {
            "resource": {"name": "BaseSearchResource", "options": {"bookmarks": ["old"]}},
            "client_context": {"analysis_ua": {"app_type": 5}, "is_authenticated": False},
            "resource_response": {
                "status": "success",
                "data": data,
                "bookmark": cursor,
            },
        }
    ).encode("utf-8")


@pytest.fixture
def search_body():
    """Factory for upstream search response bodies."""
    return _make_search_body
