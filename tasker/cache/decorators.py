from functools import wraps
from typing import Callable


def invalidates_aggregate(fn: Callable):
    """
    Decorator for async service methods that write to the store.

    The owner must expose the aggregate controller as ``self.cache``.
    The cached aggregate is dropped only after the wrapped call returns;
    when it raises, the store did not change and the cache is left alone.

    Example:
      @invalidates_aggregate
      async def delete_one(self, task_id): ...
    """

    @wraps(fn)
    async def wrapper(self, *args, **kwargs):
        result = await fn(self, *args, **kwargs)
        await self.cache.invalidate_all()
        return result

    return wrapper
