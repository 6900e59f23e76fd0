import json
import logging
from dataclasses import dataclass
from typing import Iterable

from tasker.cache.backends import CacheBackend
from tasker.core.exceptions import CacheUnavailable
from tasker.models import Task, TaskResponse
from tasker.store.task_store import TaskStore

logger = logging.getLogger(__name__)

ALL_TASKS_KEY = "tasks:all"
DEFAULT_TTL_SECONDS = 5


@dataclass(frozen=True)
class CachedTaskList:
    payload: bytes  # JSON array, newest id first
    hit: bool


def serialize_tasks(tasks: Iterable[Task]) -> bytes:
    data = [TaskResponse.model_validate(task).model_dump() for task in tasks]
    return json.dumps(data, separators=(",", ":")).encode("utf-8")


class AggregateCacheController:
    """
    Cache-aside for the "all tasks" aggregate.

    Reads try the cache first and fall back to the store, repopulating the
    cache on a miss. Writers call invalidate_all() once their store write
    has committed, never before. A read that lands between the commit and
    the delete can still cache stale rows; they live at most ``ttl`` seconds.

    The cache is advisory. Any CacheUnavailable from the backend ends
    here, as a miss on reads and a no-op on writes, and is counted in
    ``stats["errors"]``.
    """

    def __init__(
        self,
        cache: CacheBackend,
        store: TaskStore,
        key: str = ALL_TASKS_KEY,
        ttl: int = DEFAULT_TTL_SECONDS,
    ):
        self.cache = cache
        self.store = store
        self.key = key
        self.ttl = ttl

        # Stats tracking
        self.stats = {
            "hits": 0,
            "misses": 0,
            "errors": 0,
            "invalidations": 0,
        }

    async def get_all_tasks_cached(self) -> CachedTaskList:
        try:
            cached = await self.cache.get(self.key)
        except CacheUnavailable as e:
            logger.warning(f"Cache read failed, treating as miss: {e}")
            self.stats["errors"] += 1
            cached = None

        if cached is not None:
            self.stats["hits"] += 1
            logger.debug(f"Cache hit for {self.key}")
            return CachedTaskList(payload=cached, hit=True)

        self.stats["misses"] += 1
        logger.debug(f"Cache miss for {self.key}, loading from store")

        # Store errors propagate: there is nothing to fall back to.
        tasks = await self.store.list_all()
        payload = serialize_tasks(tasks)

        try:
            await self.cache.set(self.key, payload, self.ttl)
        except CacheUnavailable as e:
            logger.warning(f"Cache write failed, serving uncached result: {e}")
            self.stats["errors"] += 1

        return CachedTaskList(payload=payload, hit=False)

    async def invalidate_all(self):
        """Drop the aggregate entry. Must only be called after a committed write."""
        self.stats["invalidations"] += 1
        try:
            await self.cache.delete(self.key)
            logger.debug(f"Invalidated {self.key}")
        except CacheUnavailable as e:
            # Stale entry, if any, expires within ttl.
            logger.error(f"Cache invalidation failed for {self.key}: {e}")
            self.stats["errors"] += 1

    def get_stats(self) -> dict:
        total = self.stats["hits"] + self.stats["misses"]
        return {
            **self.stats,
            "hit_rate": self.stats["hits"] / total if total > 0 else 0,
        }
