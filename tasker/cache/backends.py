import logging
import time
from typing import Callable, Protocol

from cachetools import TLRUCache
from redis.asyncio import Redis, RedisError

from tasker.core.config import Settings
from tasker.core.exceptions import CacheUnavailable

logger = logging.getLogger(__name__)


class CacheBackend(Protocol):
    """
    Key-value store with per-key expiry.

    Backends raise CacheUnavailable when they cannot be reached; deciding
    what an outage means for a caller is left to the aggregate controller.
    """

    async def get(self, key: str) -> bytes | None: ...

    async def set(self, key: str, value: bytes, ttl: int) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def connect(self) -> None: ...

    async def ping(self) -> bool: ...

    async def close(self) -> None: ...


class RedisCache:
    """Networked cache on redis.asyncio."""

    def __init__(self, redis: Redis, namespace: str = ""):
        self._redis = redis
        self._namespace = namespace

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisCache":
        redis = Redis.from_url(
            settings.redis_dsn,
            decode_responses=False,
            max_connections=settings.redis_pool_size,
            socket_connect_timeout=settings.redis_socket_timeout,
            socket_timeout=settings.redis_socket_timeout,
            socket_keepalive=True,
            health_check_interval=30,
        )
        return cls(redis, namespace=settings.cache_namespace)

    def _key(self, key: str) -> str:
        """Build namespaced cache key."""
        return f"{self._namespace}{key}"

    async def connect(self):
        """
        Verify the connection.

        A failed ping does not stop the service from starting: the client
        reconnects on demand, and until it does every call is a miss.
        """
        if await self.ping():
            logger.info("Redis connection established")
        else:
            logger.warning("Redis unreachable at startup, running without cache")

    async def get(self, key: str) -> bytes | None:
        try:
            return await self._redis.get(self._key(key))
        except (RedisError, OSError) as e:
            raise CacheUnavailable(f"Redis GET failed: {e}") from e

    async def set(self, key: str, value: bytes, ttl: int) -> None:
        try:
            await self._redis.set(self._key(key), value, ex=ttl)
        except (RedisError, OSError) as e:
            raise CacheUnavailable(f"Redis SET failed: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await self._redis.delete(self._key(key))
        except (RedisError, OSError) as e:
            raise CacheUnavailable(f"Redis DELETE failed: {e}") from e

    async def ping(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except (RedisError, OSError) as e:
            logger.error(f"Redis ping failed: {e}")
            return False

    async def close(self):
        """Graceful shutdown of cache connections."""
        try:
            await self._redis.aclose()
            logger.info("Redis connection closed")
        except (RedisError, OSError) as e:
            logger.error(f"Error closing Redis: {e}")


class MemoryCache:
    """
    Process-local cache.

    Entries carry their own TTL: TLRUCache asks ``_expires_at`` for the
    expiry of every item it stores, so one cache can hold keys with
    different lifetimes.
    """

    def __init__(
        self,
        maxsize: int = 128,
        namespace: str = "",
        timer: Callable[[], float] = time.monotonic,
    ):
        self._namespace = namespace
        self._data = TLRUCache(maxsize=maxsize, ttu=self._expires_at, timer=timer)

    @staticmethod
    def _expires_at(_key, value, now):
        _payload, ttl = value
        return now + ttl

    def _key(self, key: str) -> str:
        return f"{self._namespace}{key}"

    async def get(self, key: str) -> bytes | None:
        entry = self._data.get(self._key(key))
        if entry is None:
            return None
        return entry[0]

    async def set(self, key: str, value: bytes, ttl: int) -> None:
        self._data[self._key(key)] = (value, ttl)

    async def delete(self, key: str) -> None:
        self._data.pop(self._key(key), None)

    async def connect(self):
        return None

    async def ping(self) -> bool:
        return True

    async def close(self):
        self._data.clear()


class NullCache:
    """No cache configured: every get misses and writes are dropped."""

    async def get(self, key: str) -> bytes | None:
        return None

    async def set(self, key: str, value: bytes, ttl: int) -> None:
        return None

    async def delete(self, key: str) -> None:
        return None

    async def connect(self):
        return None

    async def ping(self) -> bool:
        return True

    async def close(self):
        return None


def build_cache(settings: Settings) -> CacheBackend:
    if settings.cache_backend == "redis":
        return RedisCache.from_settings(settings)
    if settings.cache_backend == "memory":
        return MemoryCache(
            maxsize=settings.memory_cache_maxsize,
            namespace=settings.cache_namespace,
        )
    return NullCache()
