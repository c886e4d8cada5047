from datetime import datetime
from typing import Literal, Optional, List
from pydantic import BaseModel, Field


class ResultItem(BaseModel):
    """One deduplicated result as produced by the fetcher."""

    position: int
    url: str
    title: Optional[str] = None
    snippet: Optional[str] = None
    display_link: Optional[str] = None


class SearchRequest(BaseModel):
    query: str
    max_results: Optional[int] = Field(default=None, ge=1, le=100)
    refresh: bool = False
    provider: Optional[Literal["google", "serpapi"]] = None


class StoredResultResponse(BaseModel):
    id: int
    query: str
    url: str
    title: Optional[str] = None
    snippet: Optional[str] = None
    display_link: Optional[str] = None
    position: int
    fetched_at_utc: datetime

    model_config = {"from_attributes": True}


class SearchResponse(BaseModel):
    query: str
    from_cache: bool
    provider: Optional[str] = None
    result_count: int
    results: List[StoredResultResponse] = []


class CachedQueryResponse(BaseModel):
    query: str
    result_count: int
    fetched_at_utc: datetime

    model_config = {"from_attributes": True}
