"""Routes a search to one provider, or fans out to all three for scope=all."""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from socialsearch.core.errors import AggregateProviderError, ProviderError
from socialsearch.models.common import utcnow
from socialsearch.schemas.common import Pagination
from socialsearch.schemas.search import SearchBundle, SearchRequest, SearchResponse, SearchScope
from socialsearch.services.auth import Actor
from socialsearch.services.providers import (
    ConversationSearchProvider,
    PostSearchProvider,
    SearchCriteria,
    SearchProvider,
    UserSearchProvider,
)

logger = logging.getLogger(__name__)


def per_provider_limit(limit: int) -> int:
    return math.ceil(limit / 3)


class SearchDispatcher:
    def __init__(
        self,
        users: SearchProvider,
        posts: SearchProvider,
        conversations: SearchProvider,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._providers: dict[SearchScope, SearchProvider] = {
            SearchScope.USERS: users,
            SearchScope.POSTS: posts,
            SearchScope.CONVERSATIONS: conversations,
        }
        self._clock = clock

    @classmethod
    def from_session_factory(
        cls,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> "SearchDispatcher":
        return cls(
            UserSearchProvider(session_factory),
            PostSearchProvider(session_factory),
            ConversationSearchProvider(session_factory),
            clock=clock,
        )

    async def search(self, request: SearchRequest, actor: Actor) -> SearchResponse:
        criteria = SearchCriteria.from_request(request, now=self._clock())
        if request.scope is SearchScope.ALL:
            results, total = await self._search_all(criteria, actor)
        else:
            results, total = await self._search_one(request.scope, criteria, actor)

        return SearchResponse(
            query=request.query,
            type=request.scope,
            sort_by=request.sort,
            date_range=request.date_range,
            verified=request.verified_only,
            results=results,
            pagination=Pagination.build(limit=request.limit, offset=request.offset, total=total),
        )

    async def _search_one(self, scope: SearchScope, criteria: SearchCriteria, actor: Actor):
        provider = self._providers[scope]
        try:
            items, matched = await provider.search(criteria, actor)
        except Exception as exc:
            logger.exception("%s search failed for actor=%s", provider.name, actor.id)
            raise ProviderError() from exc
        return items, matched

    async def _search_all(self, criteria: SearchCriteria, actor: Actor) -> tuple[SearchBundle, int]:
        # Each sub-list is a first page only; "load more" re-issues the whole
        # aggregate with a larger limit.
        sub = criteria.page(limit=per_provider_limit(criteria.limit), offset=0, count_matches=False)
        tasks = [
            asyncio.create_task(self._providers[scope].search(sub, actor))
            for scope in (SearchScope.USERS, SearchScope.POSTS, SearchScope.CONVERSATIONS)
        ]
        try:
            users, posts, conversations = await asyncio.gather(*tasks)
        except Exception as exc:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.exception("aggregate search failed for actor=%s", actor.id)
            raise AggregateProviderError() from exc

        bundle = SearchBundle(users=users.items, posts=posts.items, conversations=conversations.items)
        # total is the number of items in the bundle, not the corpus match count.
        return bundle, bundle.size()
