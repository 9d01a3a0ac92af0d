"""Shared plumbing for the per-entity search providers."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Generic, NamedTuple, TypeVar

from sqlalchemy import ColumnElement, func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from socialsearch.schemas.search import SearchRequest, SearchSort
from socialsearch.services.auth import Actor
from socialsearch.services.dates import resolve_cutoff

logger = logging.getLogger(__name__)

T = TypeVar("T")

LIKE_ESCAPE = "\\"


def like_pattern(query: str) -> str:
    escaped = (
        query.lower()
        .replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


@dataclass(slots=True, frozen=True)
class SearchCriteria:
    query: str
    sort: SearchSort = SearchSort.RELEVANCE
    created_after: datetime | None = None
    verified_only: bool = False
    limit: int = 20
    offset: int = 0
    count_matches: bool = True

    @classmethod
    def from_request(cls, request: SearchRequest, *, now: datetime | None = None) -> "SearchCriteria":
        return cls(
            query=request.query,
            sort=request.sort,
            created_after=resolve_cutoff(request.date_range, now),
            verified_only=request.verified_only,
            limit=request.limit,
            offset=request.offset,
        )

    def page(self, *, limit: int, offset: int, count_matches: bool = True) -> "SearchCriteria":
        return replace(self, limit=limit, offset=offset, count_matches=count_matches)

    @property
    def pattern(self) -> str:
        return like_pattern(self.query)

    def contains(self, column) -> ColumnElement[bool]:
        """Case-insensitive substring match of the query against ``column``."""
        return func.lower(func.coalesce(column, "")).like(self.pattern, escape=LIKE_ESCAPE)


class ProviderResult(NamedTuple, Generic[T]):
    items: list[T]
    matched_count: int


class SearchProvider(ABC, Generic[T]):
    """Searches one entity domain in its own short-lived read session."""

    name: str = ""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def search(self, criteria: SearchCriteria, actor: Actor) -> ProviderResult[T]:
        async with self._session_factory() as db:
            items = await self._fetch(db, criteria, actor)
            if criteria.count_matches:
                matched = await self._count(db, criteria, actor)
            else:
                matched = len(items)
        logger.debug("%s provider matched %s (returned %s)", self.name, matched, len(items))
        return ProviderResult(items, matched)

    @abstractmethod
    def build_filter(self, criteria: SearchCriteria, actor: Actor) -> ColumnElement[bool]:
        """Structured predicate selecting the rows visible to ``actor`` that match ``criteria``."""

    @abstractmethod
    async def _fetch(self, db: AsyncSession, criteria: SearchCriteria, actor: Actor) -> list[T]: ...

    @abstractmethod
    async def _count(self, db: AsyncSession, criteria: SearchCriteria, actor: Actor) -> int: ...
