from __future__ import annotations

from pydantic import BaseModel, Field

from socialsearch.schemas.common import Pagination
from socialsearch.schemas.search import SearchScope


class HistoryEntryOut(BaseModel):
    id: int
    query: str
    type: SearchScope
    filters: dict = Field(default_factory=dict)
    results_count: int = 0
    is_favorite: bool = False
    created_at: str
    updated_at: str


class HistoryListResponse(BaseModel):
    history: list[HistoryEntryOut] = Field(default_factory=list)
    pagination: Pagination


class HistoryUpdateIn(BaseModel):
    id: int
    favorite: bool | None = None


class HistoryUpdateResponse(BaseModel):
    message: str
    history: HistoryEntryOut


class HistoryDeleteResponse(BaseModel):
    message: str
    deleted_count: int
