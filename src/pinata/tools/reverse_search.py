"""Opaque image references for the reverse image search redirect."""

import base64
import binascii
from urllib.parse import urlencode


def encode_reference(url: str) -> str:
    """URL-safe, unpadded base64 of ``url``; embedded in result cards."""
    return base64.urlsafe_b64encode(url.encode("utf-8")).rstrip(b"=").decode("ascii")


def decode_reference(ref: str) -> str:
    """Recover the original image URL from a reference.

    Raises:
        ValueError: If the reference is not valid base64 / UTF-8, or does not
            decode to an http(s) URL
    """
    try:
        padded = ref.strip() + "=" * (-len(ref.strip()) % 4)
        url = base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
    except (binascii.Error, UnicodeError) as e:
        raise ValueError("invalid reference") from e

    if not url.startswith(("http://", "https://")):
        raise ValueError("reference is not an http(s) url")
    return url


def build_redirect(url: str, service_url: str) -> str:
    """Reverse search page for ``url`` on the configured third-party service."""
    return f"{service_url}?{urlencode({'url': url})}"
