from __future__ import annotations

from fastapi import Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from socialsearch.core.config import settings
from socialsearch.db.session import get_db, get_session_factory
from socialsearch.services.aggregator import SearchDispatcher
from socialsearch.services.history import SearchHistoryStore
from socialsearch.services.recorder import BackgroundRecorder
from socialsearch.services.saved_searches import SavedSearchStore


class PageParams:
    def __init__(
        self,
        limit: int = Query(default=20, ge=1),
        offset: int = Query(default=0, ge=0),
    ) -> None:
        self.limit = min(limit, settings.search_max_limit)
        self.offset = offset


def get_search_dispatcher(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> SearchDispatcher:
    return SearchDispatcher.from_session_factory(session_factory)


def get_history_store(db: AsyncSession = Depends(get_db)) -> SearchHistoryStore:
    return SearchHistoryStore(db)


def get_saved_search_store(db: AsyncSession = Depends(get_db)) -> SavedSearchStore:
    return SavedSearchStore(db)


def get_recorder(request: Request) -> BackgroundRecorder:
    return request.app.state.recorder
