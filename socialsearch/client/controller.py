"""Client-side search state machine: Idle -> Debouncing -> Searching -> Success | Error.

Timer scheduling and transport are injected so the controller can be driven
deterministically. In-flight searches are never cancelled; a slower, older
response that resolves after a newer one is still applied.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from socialsearch.core.config import settings
from socialsearch.schemas.history import HistoryEntryOut, HistoryListResponse, HistoryUpdateResponse
from socialsearch.schemas.saved import SavedSearchListResponse, SavedSearchOut, SavedSearchResponse
from socialsearch.schemas.search import DateRange, SearchBundle, SearchResponse, SearchScope, SearchSort

logger = logging.getLogger(__name__)


class SearchState(str, Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    SEARCHING = "searching"
    SUCCESS = "success"
    ERROR = "error"


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioScheduler:
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


class SearchTransport(Protocol):
    async def search(self, params: dict[str, Any]) -> SearchResponse: ...

    async def list_history(self, *, limit: int = 20, offset: int = 0, scope: str | None = None) -> HistoryListResponse: ...

    async def set_history_favorite(self, entry_id: int, favorite: bool) -> HistoryUpdateResponse: ...

    async def delete_history(self, entry_id: int | None = None, *, all: bool = False) -> int: ...

    async def list_saved(
        self, *, limit: int = 20, offset: int = 0, active: bool | None = None
    ) -> SavedSearchListResponse: ...

    async def create_saved(self, body: dict[str, Any]) -> SavedSearchResponse: ...

    async def delete_saved(self, saved_id: int) -> None: ...

    async def record_saved_use(self, saved_id: int) -> None: ...


@dataclass
class SearchFilterState:
    sort_by: SearchSort = SearchSort.RELEVANCE
    date_range: DateRange = DateRange.ALL
    verified: bool | None = None

    def apply(self, values: dict[str, Any]) -> None:
        if values.get("sort_by") is not None:
            self.sort_by = SearchSort(values["sort_by"])
        if values.get("date_range") is not None:
            self.date_range = DateRange(values["date_range"])
        if "verified" in values:
            self.verified = values["verified"]

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"sort_by": self.sort_by.value, "date_range": self.date_range.value}
        if self.verified is not None:
            body["verified"] = self.verified
        return body


def _append_unseen(existing: list, incoming: list) -> list:
    seen = {item.id for item in existing}
    return existing + [item for item in incoming if item.id not in seen]


def merge_results(previous: SearchResponse, page: SearchResponse) -> SearchResponse:
    """Append a further page to what is already shown; never replaces items."""
    if isinstance(previous.results, SearchBundle) and isinstance(page.results, SearchBundle):
        # scope=all answers every page from offset 0, so skip what is already shown.
        merged: SearchBundle | list = SearchBundle(
            users=_append_unseen(previous.results.users, page.results.users),
            posts=_append_unseen(previous.results.posts, page.results.posts),
            conversations=_append_unseen(previous.results.conversations, page.results.conversations),
        )
    else:
        merged = list(previous.results) + list(page.results)
    return page.model_copy(update={"results": merged})


class SearchController:
    def __init__(
        self,
        transport: SearchTransport,
        *,
        scheduler: Scheduler | None = None,
        debounce_ms: int | None = None,
        auto_search: bool = True,
        page_size: int = 20,
        initial_query: str = "",
        initial_scope: SearchScope | str = SearchScope.ALL,
        initial_filters: dict[str, Any] | None = None,
    ) -> None:
        self._transport = transport
        self._scheduler = scheduler or AsyncioScheduler()
        self.debounce_ms = settings.client_debounce_ms if debounce_ms is None else debounce_ms
        self.auto_search = auto_search
        self.page_size = page_size

        self.query = initial_query
        self.scope = SearchScope(initial_scope)
        self.filters = SearchFilterState()
        self.filters.apply(initial_filters or {})

        self.state = SearchState.IDLE
        self.results: SearchResponse | None = None
        self.error: str | None = None
        self.limit = page_size
        self.offset = 0
        self.history: list[HistoryEntryOut] = []
        self.saved_searches: list[SavedSearchOut] = []

        self._timer: TimerHandle | None = None
        self._tasks: set[asyncio.Task] = set()

    # -- computed ---------------------------------------------------------

    @property
    def has_results(self) -> bool:
        return self.results is not None

    @property
    def has_more(self) -> bool:
        return bool(self.results and self.results.pagination.has_more)

    @property
    def total(self) -> int:
        return self.results.pagination.total if self.results else 0

    @property
    def can_load_more(self) -> bool:
        return self.state is not SearchState.SEARCHING and self.has_more

    # -- input ------------------------------------------------------------

    def set_query(self, query: str) -> None:
        self.query = query
        self._input_changed()

    def set_scope(self, scope: SearchScope | str) -> None:
        self.scope = SearchScope(scope)
        self._input_changed()

    def set_filters(self, **changes: Any) -> None:
        self.filters.apply(changes)
        self.offset = 0
        self._input_changed()

    def _input_changed(self) -> None:
        if not self.auto_search:
            return
        self._cancel_timer()
        if not self.query.strip():
            # Clearing the query skips the debounce wait entirely.
            self.results = None
            self.error = None
            self.state = SearchState.IDLE
            return
        self.state = SearchState.DEBOUNCING
        self._timer = self._scheduler.call_later(self.debounce_ms / 1000, self._on_timer)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        self._timer = None
        self._spawn(self._perform(reset=True))

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait for every spawned search/side-effect task to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # -- searching --------------------------------------------------------

    def _params(self, limit: int, offset: int) -> dict[str, Any]:
        params: dict[str, Any] = {
            "q": self.query,
            "type": self.scope.value,
            "sortBy": self.filters.sort_by.value,
            "dateRange": self.filters.date_range.value,
            "limit": limit,
            "offset": offset,
        }
        if self.filters.verified is not None:
            params["verified"] = str(self.filters.verified).lower()
        return params

    async def search_now(self) -> None:
        self._cancel_timer()
        await self._perform(reset=True)

    async def load_more(self) -> bool:
        if not self.can_load_more:
            return False
        if self.scope is SearchScope.ALL:
            # scope=all answers every sub-list from offset 0; a larger limit widens them.
            limit = min(self.limit + self.page_size, settings.search_max_limit)
            if limit == self.limit:
                return False
            await self._perform(reset=False, limit=limit)
        else:
            await self._perform(reset=False, limit=self.limit, offset=self.offset + self.limit)
        return True

    async def _perform(self, *, reset: bool, limit: int | None = None, offset: int = 0) -> None:
        if not self.query.strip():
            return
        if reset or limit is None:
            limit, offset = self.page_size, 0
        self.state = SearchState.SEARCHING
        self.error = None

        try:
            page = await self._transport.search(self._params(limit, offset))
        except Exception as exc:
            logger.warning("search failed: %s", exc)
            self.error = str(exc) or "Search failed"
            self.state = SearchState.ERROR
            return

        # Paging only advances once the page has arrived.
        self.limit, self.offset = limit, offset
        if reset or self.results is None:
            self.results = page
        else:
            self.results = merge_results(self.results, page)
        self.state = SearchState.SUCCESS

        if reset:
            await self.load_history()

    def reset(self) -> None:
        self._cancel_timer()
        self.query = ""
        self.results = None
        self.error = None
        self.limit = self.page_size
        self.offset = 0
        self.state = SearchState.IDLE

    # -- history ----------------------------------------------------------

    async def load_history(self, limit: int = 20) -> None:
        try:
            self.history = (await self._transport.list_history(limit=limit)).history
        except Exception as exc:
            logger.warning("failed to load search history: %s", exc)

    def load_history_search(self, entry: HistoryEntryOut) -> None:
        self._restore(entry.query, entry.type, entry.filters)

    async def toggle_history_favorite(self, entry_id: int, favorite: bool) -> bool:
        try:
            await self._transport.set_history_favorite(entry_id, favorite)
        except Exception as exc:
            logger.warning("failed to update history entry %s: %s", entry_id, exc)
            return False
        await self.load_history()
        return True

    async def clear_history(self) -> bool:
        try:
            await self._transport.delete_history(all=True)
        except Exception as exc:
            logger.warning("failed to clear search history: %s", exc)
            return False
        self.history = []
        return True

    async def delete_history_item(self, entry_id: int) -> bool:
        try:
            await self._transport.delete_history(entry_id)
        except Exception as exc:
            logger.warning("failed to delete history entry %s: %s", entry_id, exc)
            return False
        self.history = [h for h in self.history if h.id != entry_id]
        return True

    # -- saved searches ---------------------------------------------------

    async def load_saved_searches(self) -> None:
        try:
            self.saved_searches = (await self._transport.list_saved(active=True)).saved_searches
        except Exception as exc:
            logger.warning("failed to load saved searches: %s", exc)

    async def save_current_search(self, name: str, notifications: bool = False) -> SavedSearchOut:
        if not name.strip() or not self.query.strip():
            raise ValueError("Name and query are required")
        created = await self._transport.create_saved(
            {
                "name": name,
                "query": self.query,
                "type": self.scope.value,
                "filters": self.filters.to_body(),
                "notifications": notifications,
            }
        )
        await self.load_saved_searches()
        return created.saved_search

    async def delete_saved_search(self, saved_id: int) -> None:
        await self._transport.delete_saved(saved_id)
        await self.load_saved_searches()

    def load_saved_search(self, saved: SavedSearchOut) -> None:
        self._restore(saved.query, saved.type, saved.filters)
        self._spawn(self._record_saved_use(saved.id))

    async def _record_saved_use(self, saved_id: int) -> None:
        try:
            await self._transport.record_saved_use(saved_id)
        except Exception as exc:
            logger.warning("failed to record use of saved search %s: %s", saved_id, exc)

    def _restore(self, query: str, scope: SearchScope | str, filters: dict[str, Any] | None) -> None:
        self.query = query
        self.scope = SearchScope(scope)
        self.filters.apply(filters or {})
        self.offset = 0
        self._input_changed()
