import logging
from contextlib import asynccontextmanager, contextmanager
from typing import AsyncIterator, Awaitable, Callable, TypeVar

from sqlalchemy import delete, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from tasker.core.exceptions import StoreError
from tasker.models import Task

logger = logging.getLogger(__name__)

T = TypeVar("T")


@contextmanager
def _store_errors(operation: str):
    """Re-raise driver and connectivity failures as StoreError."""
    try:
        yield
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Store {operation} failed: {e}")
        raise StoreError(f"{operation} failed") from e


class TaskBatch:
    """Inserts bound to a single open transaction, see TaskStore.atomic()."""

    def __init__(self, session: AsyncSession):
        self._session = session
        self.inserted = 0

    async def insert(self, title: str) -> Task:
        task = Task(title=title, completed=False)
        self._session.add(task)
        # Flush per row so a failing statement surfaces at the row that caused it.
        await self._session.flush()
        self.inserted += 1
        return task


class TaskStore:
    """
    Persistent store for tasks.

    Every public call opens its own session, so the store is safe to share
    between concurrent requests. Multi-row writes go through atomic(), which
    commits on a clean exit and rolls back on any other exit (including
    cancellation of the calling task).
    """

    batch_class = TaskBatch

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def list_all(self) -> list[Task]:
        """All tasks, newest id first."""
        with _store_errors("list"):
            async with self._session_factory() as session:
                result = await session.exec(select(Task).order_by(Task.id.desc()))
                return list(result.all())

    async def insert(self, title: str) -> Task:
        with _store_errors("insert"):
            async with self._session_factory() as session:
                task = Task(title=title, completed=False)
                session.add(task)
                # id is assigned by the flush; nothing may fail after the commit.
                await session.flush()
                await session.commit()
                return task

    async def delete_by_id(self, task_id: int) -> bool:
        """Delete one task. Returns False when there was nothing to delete."""
        with _store_errors("delete"):
            async with self._session_factory() as session:
                task = await session.get(Task, task_id)
                if task is None:
                    return False
                await session.delete(task)
                await session.commit()
                return True

    async def delete_all(self) -> int:
        with _store_errors("delete all"):
            async with self._session_factory() as session:
                result = await session.exec(delete(Task))
                await session.commit()
                return result.rowcount

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator[TaskBatch]:
        """
        Scoped transaction for a batch of inserts.

            async with store.atomic() as batch:
                await batch.insert("Task 1")
                await batch.insert("Task 2")

        Nothing written through the batch is visible to other sessions until
        the block exits cleanly; any exception rolls all of it back.
        """
        with _store_errors("atomic batch"):
            async with self._session_factory() as session:
                async with session.begin():
                    yield self.batch_class(session)

    async def run_atomic(self, fn: Callable[[TaskBatch], Awaitable[T]]) -> T:
        async with self.atomic() as batch:
            return await fn(batch)

    async def ping(self) -> bool:
        try:
            async with self._session_factory() as session:
                await session.exec(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"Store ping failed: {e}")
            return False
