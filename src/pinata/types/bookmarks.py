"""Bookmark schemas stored in the encrypted cookie."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BookmarkKind(str, Enum):
    """What a bookmark points at. Wire values are kept short to save cookie space."""

    QUERY = "q"
    IMAGE = "img"


class BookmarkEntry(BaseModel):
    """A saved search query or image URL.

    Serialized as ``{"type": "q" | "img", "value": "..."}``. Unknown or
    missing types decode as ``QUERY`` so older or hand-edited documents stay
    readable.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    kind: BookmarkKind = Field(default=BookmarkKind.QUERY, alias="type")
    value: str = Field(default="")

    @field_validator("kind", mode="before")
    @classmethod
    def _default_unknown_kind(cls, v: Any) -> Any:
        if isinstance(v, BookmarkKind):
            return v
        if v in (BookmarkKind.QUERY.value, BookmarkKind.IMAGE.value):
            return v
        return BookmarkKind.QUERY

    @property
    def identity(self) -> tuple[BookmarkKind, str]:
        return (self.kind, self.value)


# Most recently saved first.
BookmarkList = list[BookmarkEntry]
