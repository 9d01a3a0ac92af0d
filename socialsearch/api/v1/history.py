from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from socialsearch.api.v1.deps import PageParams, get_history_store
from socialsearch.core.errors import ValidationError
from socialsearch.schemas.common import Pagination
from socialsearch.schemas.history import (
    HistoryDeleteResponse,
    HistoryListResponse,
    HistoryUpdateIn,
    HistoryUpdateResponse,
)
from socialsearch.schemas.search import SearchScope
from socialsearch.services.auth import Actor, get_current_actor
from socialsearch.services.history import SearchHistoryStore, history_out

router = APIRouter(prefix="/search/history", tags=["search"])


@router.get("", response_model=HistoryListResponse)
async def list_history(
    page: PageParams = Depends(),
    type: SearchScope | None = Query(default=None),
    actor: Actor = Depends(get_current_actor),
    store: SearchHistoryStore = Depends(get_history_store),
) -> HistoryListResponse:
    rows, total = await store.list(actor.id, limit=page.limit, offset=page.offset, scope=type)
    return HistoryListResponse(
        history=[history_out(r) for r in rows],
        pagination=Pagination.build(limit=page.limit, offset=page.offset, total=total),
    )


@router.put("", response_model=HistoryUpdateResponse)
async def update_history(
    payload: HistoryUpdateIn,
    actor: Actor = Depends(get_current_actor),
    store: SearchHistoryStore = Depends(get_history_store),
) -> HistoryUpdateResponse:
    row = await store.set_favorite(actor.id, payload.id, payload.favorite)
    return HistoryUpdateResponse(message="Search history updated", history=history_out(row))


@router.delete("", response_model=HistoryDeleteResponse)
async def delete_history(
    id: int | None = Query(default=None),
    all: bool = Query(default=False),
    actor: Actor = Depends(get_current_actor),
    store: SearchHistoryStore = Depends(get_history_store),
) -> HistoryDeleteResponse:
    if all:
        deleted = await store.delete_all(actor.id)
        return HistoryDeleteResponse(message="All search history deleted", deleted_count=deleted)
    if id is None:
        raise ValidationError(
            "Either id or all parameter is required",
            errors=[{"field": "id", "message": "Either id or all parameter is required"}],
        )
    await store.delete(actor.id, id)
    return HistoryDeleteResponse(message="Search history item deleted", deleted_count=1)
