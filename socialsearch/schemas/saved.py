from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from socialsearch.schemas.common import Pagination
from socialsearch.schemas.search import SearchFilters, SearchScope

NAME_MAX_LENGTH = 100
QUERY_MAX_LENGTH = 200


def _strip(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip()
    return value


class SavedSearchCreate(BaseModel):
    name: str = Field(min_length=1, max_length=NAME_MAX_LENGTH)
    query: str = Field(min_length=1, max_length=QUERY_MAX_LENGTH)
    type: SearchScope
    filters: SearchFilters | None = None
    notifications: bool = False

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: Any) -> Any:
        return _strip(value)


class SavedSearchUpdate(BaseModel):
    id: int
    name: str | None = Field(default=None, min_length=1, max_length=NAME_MAX_LENGTH)
    query: str | None = Field(default=None, min_length=1, max_length=QUERY_MAX_LENGTH)
    type: SearchScope | None = None
    filters: SearchFilters | None = None
    notifications: bool | None = None
    is_active: bool | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: Any) -> Any:
        return _strip(value)


class SavedSearchUseIn(BaseModel):
    id: int


class SavedSearchOut(BaseModel):
    id: int
    name: str
    query: str
    type: SearchScope
    filters: dict = Field(default_factory=dict)
    notifications: bool = False
    is_active: bool = True
    last_used: str | None = None
    use_count: int = 0
    created_at: str
    updated_at: str


class SavedSearchListResponse(BaseModel):
    saved_searches: list[SavedSearchOut] = Field(default_factory=list)
    pagination: Pagination


class SavedSearchResponse(BaseModel):
    message: str
    saved_search: SavedSearchOut
