"""
Application factory wiring settings, storage, event channel and executors
into a FastAPI app.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional, Sequence

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, configure_logging, get_settings
from .core import A2AInstance, create_a2a
from .events.base import BaseEventChannel
from .events.memory import InMemoryEventChannel
from .events.redis import create_redis_event_channel
from .executor import Executor
from .fastapi_integration import create_a2a_router
from .storage.base import BaseStorageAdapter
from .storage.memory import InMemoryStorageAdapter
from .storage.sqlalchemy import SQLAlchemyStorageAdapter

logger = logging.getLogger(__name__)


def build_storage(settings: Settings) -> BaseStorageAdapter:
    if settings.DATABASE_URL:
        logger.info("Using SQLAlchemy storage adapter.")
        return SQLAlchemyStorageAdapter.from_url(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    logger.info("DATABASE_URL not set; using in-memory storage.")
    return InMemoryStorageAdapter()


def build_event_channel(settings: Settings) -> BaseEventChannel:
    if settings.redis_events_enabled:
        logger.info("Using Redis event channel.")
        return create_redis_event_channel(
            settings.REDIS_URL,
            channel_prefix=settings.REDIS_CHANNEL_PREFIX,
            queue_maxsize=settings.SSE_QUEUE_MAXSIZE,
        )
    logger.info("Using in-process event channel.")
    return InMemoryEventChannel(queue_maxsize=settings.SSE_QUEUE_MAXSIZE)


def create_app(
    settings: Optional[Settings] = None,
    executors: Sequence[Executor] = (),
    storage: Optional[BaseStorageAdapter] = None,
    event_channel: Optional[BaseEventChannel] = None,
) -> FastAPI:
    settings = settings or get_settings()
    a2a: A2AInstance = create_a2a(
        executors=executors,
        storage=storage if storage is not None else build_storage(settings),
        event_channel=event_channel if event_channel is not None else build_event_channel(settings),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if isinstance(a2a.storage, SQLAlchemyStorageAdapter):
            await a2a.storage.create_tables()
        logger.info(f"{settings.PROJECT_NAME} started.")
        yield
        await a2a.aclose()
        logger.info(f"{settings.PROJECT_NAME} stopped.")

    app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)
    app.state.a2a = a2a
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.ALLOWED_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(create_a2a_router(
        a2a,
        prefix=settings.A2A_PREFIX,
        heartbeat_seconds=settings.SSE_HEARTBEAT_SECONDS,
        replay_on_subscribe=settings.SSE_REPLAY_ON_SUBSCRIBE,
    ))

    @app.get("/health", tags=["Health"])
    async def health_check():
        return {"status": "ok", "executors": a2a.registry.extensions}

    return app


def run() -> None:
    import uvicorn
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
