from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, Request

from socialsearch.api.v1.deps import get_recorder, get_search_dispatcher
from socialsearch.schemas.search import SearchResponse
from socialsearch.services.aggregator import SearchDispatcher
from socialsearch.services.auth import Actor, get_current_actor
from socialsearch.services.events import SearchCompleted
from socialsearch.services.query import normalize_search_request
from socialsearch.services.recorder import BackgroundRecorder

router = APIRouter(prefix="/search", tags=["search"])


@router.get("", response_model=SearchResponse)
async def search(
    request: Request,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(get_current_actor),
    dispatcher: SearchDispatcher = Depends(get_search_dispatcher),
    recorder: BackgroundRecorder = Depends(get_recorder),
) -> SearchResponse:
    """Search users, posts and conversations.

    Query params: q, type (all|users|posts|conversations), limit, offset,
    sortBy (relevance|date|popularity), dateRange (all|day|week|month|year),
    verified.
    """
    search_request = normalize_search_request(request.query_params, actor.id)
    response = await dispatcher.search(search_request, actor)
    # Runs after the response is sent; failures never reach the caller.
    background_tasks.add_task(recorder.publish, SearchCompleted.from_search(search_request, response))
    return response
