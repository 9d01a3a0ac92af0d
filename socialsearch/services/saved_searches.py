from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from socialsearch.core.config import settings
from socialsearch.core.errors import ConflictError, NotFoundError, QuotaExceededError
from socialsearch.models.common import as_iso, utcnow
from socialsearch.models.search import SavedSearch
from socialsearch.schemas.saved import SavedSearchCreate, SavedSearchOut, SavedSearchUpdate
from socialsearch.schemas.search import SearchScope

SAVED_SEARCH_ORDER = (
    SavedSearch.is_active.desc(),
    SavedSearch.last_used.desc().nulls_last(),
    SavedSearch.created_at.desc(),
    SavedSearch.id.desc(),
)


def saved_search_out(row: SavedSearch) -> SavedSearchOut:
    return SavedSearchOut(
        id=row.id,
        name=row.name,
        query=row.query,
        type=SearchScope(row.scope),
        filters=row.filters or {},
        notifications=bool(row.notifications),
        is_active=bool(row.is_active),
        last_used=as_iso(row.last_used) or None,
        use_count=row.use_count,
        created_at=as_iso(row.created_at),
        updated_at=as_iso(row.updated_at),
    )


class SavedSearchStore:
    """Named, reusable searches; unique name per owner, capped by quota."""

    def __init__(self, db: AsyncSession, *, quota: int | None = None) -> None:
        self.db = db
        self.quota = quota if quota is not None else settings.saved_search_quota

    async def list(
        self,
        owner_id: int,
        *,
        limit: int,
        offset: int = 0,
        active: bool | None = None,
    ) -> tuple[list[SavedSearch], int]:
        where = [SavedSearch.user_id == owner_id]
        if active is not None:
            where.append(SavedSearch.is_active.is_(active))

        rows = (
            await self.db.execute(
                select(SavedSearch).where(*where).order_by(*SAVED_SEARCH_ORDER).limit(limit).offset(offset)
            )
        ).scalars().all()
        total = (await self.db.execute(select(func.count(SavedSearch.id)).where(*where))).scalar_one()
        return list(rows), int(total)

    async def get(self, owner_id: int, saved_id: int) -> SavedSearch:
        row = (
            await self.db.execute(
                select(SavedSearch).where(SavedSearch.id == saved_id, SavedSearch.user_id == owner_id)
            )
        ).scalar_one_or_none()
        if row is None:
            raise NotFoundError("Saved search not found")
        return row

    async def _name_taken(self, owner_id: int, name: str, *, exclude_id: int | None = None) -> bool:
        stmt = select(SavedSearch.id).where(SavedSearch.user_id == owner_id, SavedSearch.name == name)
        if exclude_id is not None:
            stmt = stmt.where(SavedSearch.id != exclude_id)
        return (await self.db.execute(stmt.limit(1))).scalar_one_or_none() is not None

    async def count(self, owner_id: int) -> int:
        total = (
            await self.db.execute(select(func.count(SavedSearch.id)).where(SavedSearch.user_id == owner_id))
        ).scalar_one()
        return int(total)

    async def create(self, owner_id: int, payload: SavedSearchCreate) -> SavedSearch:
        if await self._name_taken(owner_id, payload.name):
            raise ConflictError()
        if await self.count(owner_id) >= self.quota:
            raise QuotaExceededError(f"Maximum number of saved searches reached ({self.quota})")

        row = SavedSearch(
            user_id=owner_id,
            name=payload.name,
            query=payload.query,
            scope=payload.type.value,
            filters=payload.filters.snapshot() if payload.filters else {},
            notifications=payload.notifications,
            is_active=True,
            use_count=0,
        )
        self.db.add(row)
        await self._commit_unique()
        await self.db.refresh(row)
        return row

    async def update(self, owner_id: int, payload: SavedSearchUpdate) -> SavedSearch:
        row = await self.get(owner_id, payload.id)

        if payload.name is not None and payload.name != row.name:
            if await self._name_taken(owner_id, payload.name, exclude_id=row.id):
                raise ConflictError()
            row.name = payload.name
        if payload.query is not None:
            row.query = payload.query
        if payload.type is not None:
            row.scope = payload.type.value
        if payload.filters is not None:
            row.filters = payload.filters.snapshot()
        if payload.notifications is not None:
            row.notifications = payload.notifications
        if payload.is_active is not None:
            row.is_active = payload.is_active
        row.updated_at = utcnow()

        await self._commit_unique()
        await self.db.refresh(row)
        return row

    async def delete(self, owner_id: int, saved_id: int) -> None:
        row = await self.get(owner_id, saved_id)
        await self.db.delete(row)
        await self.db.commit()

    async def record_use(self, owner_id: int, saved_id: int, *, used_at: datetime | None = None) -> SavedSearch:
        row = await self.get(owner_id, saved_id)
        row.use_count = (row.use_count or 0) + 1
        row.last_used = used_at or utcnow()
        await self.db.commit()
        await self.db.refresh(row)
        return row

    async def _commit_unique(self) -> None:
        try:
            await self.db.commit()
        except IntegrityError as exc:
            # Lost a race with another session of the same owner.
            await self.db.rollback()
            raise ConflictError() from exc
