"""Pydantic models for search requests and responses."""

from pydantic import BaseModel, Field


class SearchQuery(BaseModel):
    """A free-text query against one datastore.

    top_k is required and must be strictly positive; it is never clamped.
    """

    text: str = Field(min_length=1)
    top_k: int = Field(gt=0)
    tags: list[str] | None = None
    datasource_ids: list[str] | None = None
    unique_sources: bool = False


class SearchResultItem(BaseModel):
    """A single chunk returned from the vector index. Never carries the vector."""

    score: float
    source: str | None = None
    text: str | None = None


class SearchResponse(BaseModel):
    """Ranked results for a query, best match first."""

    query: str
    results: list[SearchResultItem]
    total: int
