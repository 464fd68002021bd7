"""API response schemas for JSON endpoints."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response schema for GET /health endpoint."""

    status: str = Field(default="ok")
    version: str = Field(default="1.0.0")
    bookmarks_enabled: bool = Field(default=False, description="Bookmark store has a valid key")
    reverse_search_enabled: bool = Field(default=True, description="Reverse search links shown")
