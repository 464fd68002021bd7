"""Search-related Pydantic schemas."""

from pydantic import BaseModel, Field


class SearchQuery(BaseModel):
    """A search as requested by the browser.

    ``bookmark`` and ``csrftoken`` are provider-issued and threaded through
    verbatim; they are never parsed.
    """

    query: str = Field(..., min_length=1, description="Trimmed search text")
    bookmark: str | None = Field(default=None, description="Opaque pagination cursor")
    csrftoken: str | None = Field(default=None, description="Opaque anti-forgery token")


class SearchResultItem(BaseModel):
    """One entry of the upstream ``results`` array; only the original image URL is kept."""

    url: str = Field(..., min_length=1, description="images.orig.url of the result")
