# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest
import pytest_asyncio

from tasker.cache.controller import AggregateCacheController
from tasker.core.config import Settings
from tasker.database import create_db_and_tables, create_engine, create_session_factory
from tasker.services.task_service import TaskService
from tasker.store.task_store import TaskStore

from tests.fakes import FakeClock, RecordingCache


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a throwaway SQLite file and the in-process cache."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'tasks.sqlite3'}",
        cache_backend="memory",
        auto_create_schema=True,
        log_level="DEBUG",
    )


@pytest_asyncio.fixture()
async def engine(settings: Settings):
    engine = create_engine(settings)
    await create_db_and_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture()
def store(session_factory) -> TaskStore:
    return TaskStore(session_factory)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def journal() -> list[str]:
    return []


@pytest.fixture()
def cache(clock: FakeClock, journal: list[str]) -> RecordingCache:
    return RecordingCache(timer=clock, journal=journal)


@pytest.fixture()
def controller(cache: RecordingCache, store: TaskStore) -> AggregateCacheController:
    return AggregateCacheController(cache, store)


@pytest.fixture()
def service(store: TaskStore, controller: AggregateCacheController) -> TaskService:
    return TaskService(store, controller)
