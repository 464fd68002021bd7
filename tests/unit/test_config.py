"""Tests for settings loading and feature switches."""

import base64

import pytest
from pydantic import ValidationError

from pinata.cli import generate_key
from pinata.config import Settings


def _settings(**kwargs) -> Settings:
    return Settings(_env_file=None, **kwargs)


class TestBookmarkKey:
    def test_valid_key_enables_bookmarks(self):
        key = base64.b64encode(b"k" * 32).decode("ascii")

        settings = _settings(bookmark_key=key)

        assert settings.bookmark_key_bytes == b"k" * 32
        assert settings.bookmarks_enabled is True

    @pytest.mark.parametrize(
        "key",
        ["", "   ", "not base64!", base64.b64encode(b"k" * 16).decode("ascii")],
    )
    def test_invalid_key_disables_bookmarks(self, key: str):
        settings = _settings(bookmark_key=key)

        assert settings.bookmark_key_bytes is None
        assert settings.bookmarks_enabled is False

    def test_generated_key_is_valid(self):
        assert _settings(bookmark_key=generate_key()).bookmarks_enabled is True


class TestEnvironment:
    @pytest.mark.parametrize("raw", ["1", "true", "yes", "TRUE"])
    def test_disable_reverse_from_env(self, monkeypatch, raw: str):
        monkeypatch.setenv("PINATA_DISABLE_REVERSE", raw)

        settings = _settings()

        assert settings.disable_reverse is True
        assert settings.reverse_enabled is False

    def test_key_from_env(self, monkeypatch):
        monkeypatch.setenv("PINATA_BOOKMARK_KEY", base64.b64encode(b"z" * 32).decode("ascii"))

        assert _settings().bookmarks_enabled is True

    def test_defaults(self):
        settings = _settings()

        assert settings.max_bookmarks == 30
        assert settings.max_bookmark_length == 256
        assert settings.image_host == "i.pinimg.com"
        assert settings.cookie_name == "pinata_bm"

    def test_settings_are_frozen(self):
        settings = _settings()

        with pytest.raises(ValidationError):
            settings.disable_reverse = True
