# tests/test_cache_backends.py

from __future__ import annotations

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from tasker.cache.backends import MemoryCache, NullCache, RedisCache, build_cache
from tasker.core.config import Settings
from tasker.core.exceptions import CacheUnavailable

from tests.fakes import FakeClock


class StubRedis:
    """Just enough of redis.asyncio.Redis for RedisCache."""

    def __init__(self, *, down: bool = False) -> None:
        self.down = down
        self.data: dict[str, bytes] = {}
        self.expiries: dict[str, int] = {}

    def _check(self) -> None:
        if self.down:
            raise RedisConnectionError("Error 111 connecting to localhost:6379")

    async def get(self, key):
        self._check()
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self._check()
        self.data[key] = value
        self.expiries[key] = ex
        return True

    async def delete(self, *keys):
        self._check()
        return sum(1 for k in keys if self.data.pop(k, None) is not None)

    async def ping(self):
        self._check()
        return True

    async def aclose(self):
        return None


@pytest.mark.asyncio
async def test_memory_cache_entry_expires_after_its_ttl() -> None:
    clock = FakeClock()
    cache = MemoryCache(timer=clock)

    await cache.set("tasks:all", b"[]", 5)
    clock.advance(4.9)
    assert await cache.get("tasks:all") == b"[]"

    clock.advance(0.2)
    assert await cache.get("tasks:all") is None


@pytest.mark.asyncio
async def test_memory_cache_ttl_is_per_key() -> None:
    clock = FakeClock()
    cache = MemoryCache(timer=clock)

    await cache.set("short", b"1", 1)
    await cache.set("long", b"2", 60)
    clock.advance(2)

    assert await cache.get("short") is None
    assert await cache.get("long") == b"2"


@pytest.mark.asyncio
async def test_memory_cache_delete_missing_key() -> None:
    cache = MemoryCache()
    await cache.delete("nope")
    assert await cache.get("nope") is None


@pytest.mark.asyncio
async def test_null_cache_never_stores() -> None:
    cache = NullCache()
    await cache.set("tasks:all", b"[]", 5)
    assert await cache.get("tasks:all") is None
    await cache.delete("tasks:all")


@pytest.mark.asyncio
async def test_redis_cache_namespaces_keys_and_sets_expiry() -> None:
    redis = StubRedis()
    cache = RedisCache(redis, namespace="tasker:")

    await cache.set("tasks:all", b"[]", 5)

    assert redis.data == {"tasker:tasks:all": b"[]"}
    assert redis.expiries == {"tasker:tasks:all": 5}
    assert await cache.get("tasks:all") == b"[]"

    await cache.delete("tasks:all")
    assert await cache.get("tasks:all") is None


@pytest.mark.asyncio
@pytest.mark.parametrize("call", ["get", "set", "delete"])
async def test_redis_cache_raises_cache_unavailable_when_down(call: str) -> None:
    cache = RedisCache(StubRedis(down=True))

    with pytest.raises(CacheUnavailable):
        if call == "get":
            await cache.get("tasks:all")
        elif call == "set":
            await cache.set("tasks:all", b"[]", 5)
        else:
            await cache.delete("tasks:all")


@pytest.mark.asyncio
async def test_redis_cache_ping_reports_outage_without_raising() -> None:
    assert await RedisCache(StubRedis()).ping() is True
    assert await RedisCache(StubRedis(down=True)).ping() is False


def test_build_cache_selects_backend() -> None:
    assert isinstance(build_cache(Settings(cache_backend="memory")), MemoryCache)
    assert isinstance(build_cache(Settings(cache_backend="none")), NullCache)
    assert isinstance(build_cache(Settings(cache_backend="redis")), RedisCache)
