from __future__ import annotations

from arq.connections import RedisSettings

from socialsearch.core.config import settings
from socialsearch.core.logging import configure_logging
from socialsearch.db.session import SessionLocal
from socialsearch.services.events import SavedSearchUsed, SearchCompleted
from socialsearch.services.recorder import write_event


async def record_search_history_job(ctx, payload: dict) -> dict:
    stored = await write_event(SessionLocal, SearchCompleted.from_payload(payload))
    return {"stored": stored}


async def record_saved_search_use_job(ctx, payload: dict) -> dict:
    stored = await write_event(SessionLocal, SavedSearchUsed.from_payload(payload))
    return {"stored": stored}


async def startup(ctx) -> None:
    configure_logging()


class WorkerSettings:
    redis_settings = RedisSettings.from_dsn(settings.redis_url)
    functions = [record_search_history_job, record_saved_search_use_job]
    on_startup = startup
