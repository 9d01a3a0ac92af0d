"""Best-effort background persistence of search history and saved-search usage.

Nothing here may delay or fail a search response: publishing never raises,
and write failures are logged as ``PersistenceWarning`` and dropped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol, Union

from arq.connections import ArqRedis
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from socialsearch.core.errors import PersistenceWarning
from socialsearch.services.events import SavedSearchUsed, SearchCompleted
from socialsearch.services.history import SearchHistoryStore
from socialsearch.services.saved_searches import SavedSearchStore

logger = logging.getLogger(__name__)

BackgroundEvent = Union[SearchCompleted, SavedSearchUsed]

HISTORY_JOB = "record_search_history_job"
SAVED_USE_JOB = "record_saved_search_use_job"


def _warn(message: str, exc: BaseException) -> None:
    logger.warning("%s", PersistenceWarning(message), exc_info=exc)


async def write_event(session_factory: async_sessionmaker[AsyncSession], event: BackgroundEvent) -> bool:
    """Persist one event in its own session. Returns False if the write was dropped."""
    try:
        async with session_factory() as db:
            if isinstance(event, SearchCompleted):
                await SearchHistoryStore(db).record(event)
            else:
                await SavedSearchStore(db).record_use(
                    event.actor_id,
                    event.saved_search_id,
                    used_at=event.occurred_at,
                )
    except Exception as exc:
        _warn(f"failed to persist {type(event).__name__} for actor={event.actor_id}", exc)
        return False
    return True


class BackgroundRecorder(Protocol):
    async def publish(self, event: BackgroundEvent) -> None: ...


class InProcessRecorder:
    """Queue drained by a single asyncio worker task in the API process."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], *, maxsize: int = 1000) -> None:
        self._session_factory = session_factory
        self._queue: asyncio.Queue[BackgroundEvent] = asyncio.Queue(maxsize=maxsize)
        self._worker: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def start(self) -> None:
        if not self.running:
            self._worker = asyncio.create_task(self._run(), name="search-history-recorder")

    async def stop(self) -> None:
        if self._worker is None:
            return
        await self.drain()
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None

    async def publish(self, event: BackgroundEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull as exc:
            _warn("background queue full, dropping event", exc)

    async def drain(self) -> None:
        await self._queue.join()

    async def _run(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await write_event(self._session_factory, event)
            finally:
                self._queue.task_done()


class ArqRecorder:
    """Hands events to the arq worker (see ``socialsearch.workers.arq_worker``)."""

    def __init__(self, pool: ArqRedis) -> None:
        self._pool = pool

    async def publish(self, event: BackgroundEvent) -> None:
        job = HISTORY_JOB if isinstance(event, SearchCompleted) else SAVED_USE_JOB
        try:
            await self._pool.enqueue_job(job, event.to_payload())
        except Exception as exc:
            _warn(f"failed to enqueue {job}", exc)

    async def close(self) -> None:
        await self._pool.aclose()
