from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from socialsearch.api.v1.deps import PageParams, get_recorder, get_saved_search_store
from socialsearch.schemas.common import MessageResponse, Pagination
from socialsearch.schemas.saved import (
    SavedSearchCreate,
    SavedSearchListResponse,
    SavedSearchResponse,
    SavedSearchUpdate,
    SavedSearchUseIn,
)
from socialsearch.services.auth import Actor, get_current_actor
from socialsearch.services.events import SavedSearchUsed
from socialsearch.services.recorder import BackgroundRecorder
from socialsearch.services.saved_searches import SavedSearchStore, saved_search_out

router = APIRouter(prefix="/search/saved", tags=["search"])


@router.get("", response_model=SavedSearchListResponse)
async def list_saved_searches(
    page: PageParams = Depends(),
    active: bool | None = Query(default=None),
    actor: Actor = Depends(get_current_actor),
    store: SavedSearchStore = Depends(get_saved_search_store),
) -> SavedSearchListResponse:
    rows, total = await store.list(actor.id, limit=page.limit, offset=page.offset, active=active)
    return SavedSearchListResponse(
        saved_searches=[saved_search_out(r) for r in rows],
        pagination=Pagination.build(limit=page.limit, offset=page.offset, total=total),
    )


@router.post("", response_model=SavedSearchResponse, status_code=status.HTTP_201_CREATED)
async def create_saved_search(
    payload: SavedSearchCreate,
    actor: Actor = Depends(get_current_actor),
    store: SavedSearchStore = Depends(get_saved_search_store),
) -> SavedSearchResponse:
    row = await store.create(actor.id, payload)
    return SavedSearchResponse(message="Saved search created successfully", saved_search=saved_search_out(row))


@router.put("", response_model=SavedSearchResponse)
async def update_saved_search(
    payload: SavedSearchUpdate,
    actor: Actor = Depends(get_current_actor),
    store: SavedSearchStore = Depends(get_saved_search_store),
) -> SavedSearchResponse:
    row = await store.update(actor.id, payload)
    return SavedSearchResponse(message="Saved search updated successfully", saved_search=saved_search_out(row))


@router.delete("", response_model=MessageResponse)
async def delete_saved_search(
    id: int = Query(...),
    actor: Actor = Depends(get_current_actor),
    store: SavedSearchStore = Depends(get_saved_search_store),
) -> MessageResponse:
    await store.delete(actor.id, id)
    return MessageResponse(message="Saved search deleted successfully")


@router.post("/use", response_model=MessageResponse, status_code=status.HTTP_202_ACCEPTED)
async def use_saved_search(
    payload: SavedSearchUseIn,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(get_current_actor),
    recorder: BackgroundRecorder = Depends(get_recorder),
) -> MessageResponse:
    background_tasks.add_task(recorder.publish, SavedSearchUsed(actor_id=actor.id, saved_search_id=payload.id))
    return MessageResponse(message="Saved search usage recorded")
