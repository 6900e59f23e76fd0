import logging
import re
from typing import Any

from tasker.cache.controller import AggregateCacheController, CachedTaskList
from tasker.cache.decorators import invalidates_aggregate
from tasker.core.exceptions import ValidationError
from tasker.models import Task
from tasker.store.task_store import TaskBatch, TaskStore

logger = logging.getLogger(__name__)

DEFAULT_GENERATE_COUNT = 1000

_INTEGER = re.compile(r"[+-]?[0-9]+")


def parse_int(raw: Any) -> int | None:
    """Integer from an int or a plain decimal string; None for anything else."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and _INTEGER.fullmatch(raw):
        return int(raw)
    return None


def normalize_count(raw: Any, default: int = DEFAULT_GENERATE_COUNT) -> int:
    """Positive integer from ``raw``, or ``default`` for anything else."""
    count = parse_int(raw)
    return count if count is not None and count > 0 else default


class TaskService:
    def __init__(
        self,
        store: TaskStore,
        cache: AggregateCacheController,
        default_generate_count: int = DEFAULT_GENERATE_COUNT,
    ):
        self.store = store
        self.cache = cache
        self.default_generate_count = default_generate_count

    async def list(self) -> CachedTaskList:
        return await self.cache.get_all_tasks_cached()

    async def create(self, title: str) -> Task:
        if not title:
            raise ValidationError("title must not be empty")
        return await self._insert(title)

    @invalidates_aggregate
    async def _insert(self, title: str) -> Task:
        task = await self.store.insert(title)
        logger.info(f"Created task {task.id}")
        return task

    @invalidates_aggregate
    async def delete_one(self, task_id: int | str) -> None:
        # Deleting a missing id is not an error and still invalidates.
        parsed = parse_int(task_id)
        if parsed is None:
            logger.info(f"Task {task_id!r} is not an id, nothing to delete")
            return
        deleted = await self.store.delete_by_id(parsed)
        logger.info(f"Deleted task {task_id}" if deleted else f"Task {task_id} already absent")

    @invalidates_aggregate
    async def delete_all(self) -> None:
        removed = await self.store.delete_all()
        logger.info(f"Deleted all tasks ({removed} rows)")

    async def generate(self, count: Any = None) -> int:
        count = normalize_count(count, self.default_generate_count)
        return await self._generate(count)

    @invalidates_aggregate
    async def _generate(self, count: int) -> int:
        async def insert_numbered(batch: TaskBatch) -> int:
            for n in range(1, count + 1):
                await batch.insert(f"Task {n}")
            return batch.inserted

        created = await self.store.run_atomic(insert_numbered)
        logger.info(f"Generated {created} tasks")
        return created
