from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from arq import create_pool
from arq.connections import RedisSettings
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from socialsearch.api.v1.router import api_router
from socialsearch.core.config import settings
from socialsearch.core.errors import install_error_handlers
from socialsearch.core.logging import configure_logging
from socialsearch.db.session import SessionLocal, engine
from socialsearch.middleware.rate_limit import RedisRateLimitMiddleware
from socialsearch.services.recorder import ArqRecorder, InProcessRecorder

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.history_backend == "arq":
        recorder = ArqRecorder(await create_pool(RedisSettings.from_dsn(settings.redis_url)))
    else:
        recorder = InProcessRecorder(SessionLocal, maxsize=settings.history_queue_size)
        recorder.start()
    app.state.recorder = recorder
    logger.info("search history backend: %s", settings.history_backend)

    yield

    if isinstance(recorder, InProcessRecorder):
        await recorder.stop()
    else:
        await recorder.close()
    await engine.dispose()


app = FastAPI(title=settings.app_name, default_response_class=ORJSONResponse, version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
if settings.rate_limit_enabled:
    app.add_middleware(RedisRateLimitMiddleware)

install_error_handlers(app)
app.include_router(api_router, prefix=settings.api_prefix)

Instrumentator().instrument(app).expose(app)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
