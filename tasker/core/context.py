import logging
from dataclasses import dataclass

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine

from tasker.cache.backends import CacheBackend, build_cache
from tasker.cache.controller import AggregateCacheController
from tasker.core.config import Settings
from tasker.database import create_db_and_tables, create_engine, create_session_factory
from tasker.services.task_service import TaskService
from tasker.store.task_store import TaskStore

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Process-wide handles, built before serving and closed on shutdown."""

    settings: Settings
    engine: AsyncEngine
    cache_backend: CacheBackend
    store: TaskStore
    cache: AggregateCacheController
    tasks: TaskService

    @classmethod
    async def create(
        cls, settings: Settings, cache_backend: CacheBackend | None = None
    ) -> "AppContext":
        engine = create_engine(settings)
        if settings.auto_create_schema:
            await create_db_and_tables(engine)

        if cache_backend is None:
            cache_backend = build_cache(settings)
        await cache_backend.connect()

        store = TaskStore(create_session_factory(engine))
        cache = AggregateCacheController(
            cache_backend,
            store,
            key=settings.cache_key,
            ttl=settings.cache_ttl_seconds,
        )
        tasks = TaskService(
            store, cache, default_generate_count=settings.generate_default_count
        )
        logger.info(f"Application context ready (cache backend: {settings.cache_backend})")
        return cls(settings, engine, cache_backend, store, cache, tasks)

    async def close(self):
        await self.cache_backend.close()
        await self.engine.dispose()
        logger.info("Application context closed")


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_task_service(request: Request) -> TaskService:
    return get_context(request).tasks
