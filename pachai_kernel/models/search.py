"""Search: ephemeral external references. Never cached, never persisted."""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field


class SearchResult(BaseModel):
    title: str
    snippet: str = ""
    source: str = ""
    url: str = ""


class SearchIntent(BaseModel):
    """An explicit imperative search request found in a user message."""

    query: str
    confidence: float = Field(ge=0.0, le=1.0, default=1.0)


class SearchContext(BaseModel):
    """
    The outcome of one externally-confirmed search operation.

    Lives for a single pipeline run. `confirmed_by_user` is only set by the
    confirmed-search path; governance strips any context without it.
    """

    query: str
    results: List[SearchResult] = []
    executed_at: datetime
    confirmed_by_user: bool = False
