from __future__ import annotations

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from socialsearch.core.errors import NotFoundError
from socialsearch.models.common import as_iso, utcnow
from socialsearch.models.search import SearchHistory
from socialsearch.schemas.history import HistoryEntryOut
from socialsearch.schemas.search import SearchScope
from socialsearch.services.events import SearchCompleted

HISTORY_ORDER = (
    SearchHistory.is_favorite.desc(),
    SearchHistory.updated_at.desc(),
    SearchHistory.created_at.desc(),
    SearchHistory.id.desc(),
)


def history_out(row: SearchHistory) -> HistoryEntryOut:
    return HistoryEntryOut(
        id=row.id,
        query=row.query,
        type=SearchScope(row.scope),
        filters=row.filters or {},
        results_count=row.results_count,
        is_favorite=bool(row.is_favorite),
        created_at=as_iso(row.created_at),
        updated_at=as_iso(row.updated_at),
    )


class SearchHistoryStore:
    """Owner-scoped CRUD over executed searches."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list(
        self,
        owner_id: int,
        *,
        limit: int,
        offset: int = 0,
        scope: SearchScope | None = None,
    ) -> tuple[list[SearchHistory], int]:
        where = [SearchHistory.user_id == owner_id]
        if scope is not None and scope is not SearchScope.ALL:
            where.append(SearchHistory.scope == scope.value)

        rows = (
            await self.db.execute(
                select(SearchHistory).where(*where).order_by(*HISTORY_ORDER).limit(limit).offset(offset)
            )
        ).scalars().all()
        total = (await self.db.execute(select(func.count(SearchHistory.id)).where(*where))).scalar_one()
        return list(rows), int(total)

    async def get(self, owner_id: int, entry_id: int) -> SearchHistory:
        row = (
            await self.db.execute(
                select(SearchHistory).where(SearchHistory.id == entry_id, SearchHistory.user_id == owner_id)
            )
        ).scalar_one_or_none()
        if row is None:
            raise NotFoundError("Search history item not found")
        return row

    async def set_favorite(self, owner_id: int, entry_id: int, favorite: bool | None) -> SearchHistory:
        row = await self.get(owner_id, entry_id)
        if favorite is not None:
            row.is_favorite = favorite
        row.updated_at = utcnow()
        await self.db.commit()
        await self.db.refresh(row)
        return row

    async def delete(self, owner_id: int, entry_id: int) -> None:
        row = await self.get(owner_id, entry_id)
        await self.db.delete(row)
        await self.db.commit()

    async def delete_all(self, owner_id: int) -> int:
        result = await self.db.execute(delete(SearchHistory).where(SearchHistory.user_id == owner_id))
        await self.db.commit()
        return int(result.rowcount or 0)

    async def record(self, event: SearchCompleted) -> SearchHistory:
        row = SearchHistory(
            user_id=event.actor_id,
            query=event.query,
            scope=event.scope,
            filters=event.filters,
            results_count=event.results_count,
            is_favorite=False,
            created_at=event.occurred_at,
            updated_at=event.occurred_at,
        )
        self.db.add(row)
        await self.db.commit()
        await self.db.refresh(row)
        return row
