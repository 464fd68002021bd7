"""Configuration module using pydantic-settings for type-safe env variable loading."""

import base64
import binascii

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

BOOKMARK_KEY_SIZE = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Every variable carries the ``PINATA_`` prefix (``PINATA_BOOKMARK_KEY``,
    ``PINATA_DISABLE_REVERSE``, ...). The instance is frozen: it is read once
    at process start and handed to the app factory.
    """

    model_config = SettingsConfigDict(
        env_prefix="PINATA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Feature switches
    bookmark_key: str = Field(
        default="",
        description="Base64 encoded 32-byte AES key; empty or invalid disables bookmarks",
    )
    disable_reverse: bool = Field(
        default=False,
        description="Hide reverse image search links and 404 the redirector",
    )

    # Application Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    host: str = Field(default="0.0.0.0", description="Bind address for uvicorn")
    port: int = Field(default=8080, ge=1, le=65535, description="Port for uvicorn")

    # Upstream endpoints
    search_url: str = Field(
        default="https://www.pinterest.com/resource/BaseSearchResource/get/",
        description="Upstream JSON search resource",
    )
    image_host: str = Field(
        default="i.pinimg.com",
        description="Only host the image proxy will fetch from (https only)",
    )
    reverse_search_url: str = Field(
        default="https://tineye.com/search",
        description="Third-party reverse image search page; receives ?url=",
    )

    # Outbound HTTP client
    connect_timeout: float = Field(default=8.0, gt=0, description="TCP/TLS connect timeout (s)")
    read_timeout: float = Field(default=15.0, gt=0, description="Idle read timeout (s)")
    image_fetch_timeout: float = Field(
        default=20.0,
        gt=0,
        description="Overall deadline for one proxied image fetch (s)",
    )
    max_connections: int = Field(default=6, ge=1, description="Pool size for outbound calls")
    max_keepalive_connections: int = Field(default=3, ge=0, description="Idle connections kept")
    keepalive_expiry: float = Field(default=60.0, gt=0, description="Idle connection lifetime (s)")
    copy_buffer_size: int = Field(
        default=32 * 1024,
        ge=1024,
        description="Size of the pooled buffers used to relay image bodies",
    )

    # Search
    query_max_length: int = Field(default=64, ge=1, description="Longest accepted search query")

    # Bookmarks
    max_bookmarks: int = Field(default=30, ge=1, description="Entries kept in the cookie")
    max_bookmark_length: int = Field(
        default=256, ge=1, description="Longest stored bookmark value (truncated on write)"
    )
    import_max_bytes: int = Field(
        default=2 * 1024 * 1024, ge=1, description="Hard ceiling for bookmark import uploads"
    )
    cookie_name: str = Field(default="pinata_bm", description="Bookmark cookie name")
    cookie_max_age: int = Field(
        default=60 * 60 * 24 * 365 * 10, description="Bookmark cookie lifetime (s)"
    )
    cookie_secure: bool = Field(
        default=False,
        description="Mark the bookmark cookie Secure (enable behind HTTPS)",
    )

    @property
    def bookmark_key_bytes(self) -> bytes | None:
        """Decoded bookmark key, or None when absent or malformed."""
        raw = self.bookmark_key.strip()
        if not raw:
            return None
        try:
            decoded = base64.b64decode(raw, validate=True)
        except (binascii.Error, ValueError):
            return None
        if len(decoded) != BOOKMARK_KEY_SIZE:
            return None
        return decoded

    @property
    def bookmarks_enabled(self) -> bool:
        return self.bookmark_key_bytes is not None

    @property
    def reverse_enabled(self) -> bool:
        return not self.disable_reverse


# Global settings instance
settings = Settings()
