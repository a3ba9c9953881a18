"""Integration tests for the Redis store using testcontainers."""

import pytest

# Skip all tests if redis or testcontainers are not installed
pytest.importorskip("redis")
pytest.importorskip("testcontainers")

import asyncio

import redis.asyncio
from testcontainers.redis import RedisContainer

from cachemanager import Cache, NotCacheableError
from cachemanager.stores.redis import RedisStore


@pytest.fixture(scope="module")
def redis_container():
    """Start a Redis container for the test module."""
    with RedisContainer() as container:
        yield container


@pytest.fixture
async def redis_store(redis_container):
    """Create a RedisStore with a test prefix, flushed after each test."""
    client = redis.asyncio.Redis(
        host=redis_container.get_container_host_ip(),
        port=redis_container.get_exposed_port(6379),
        decode_responses=False,
    )
    store = RedisStore(client, prefix="test")
    yield store
    await client.flushdb()
    await store.disconnect()


class TestRedisStore:
    """Integration tests for RedisStore."""

    async def test_get_nonexistent_returns_none(self, redis_store: RedisStore) -> None:
        """Test that getting a nonexistent key returns None."""
        assert await redis_store.get("nonexistent") is None

    async def test_set_and_get(self, redis_store: RedisStore) -> None:
        """Test setting and getting a JSON value."""
        await redis_store.set("key1", {"id": "123", "tags": ["a", "b"]})
        assert await redis_store.get("key1") == {"id": "123", "tags": ["a", "b"]}

    async def test_set_none_rejected(self, redis_store: RedisStore) -> None:
        with pytest.raises(NotCacheableError):
            await redis_store.set("key1", None)

    async def test_expiry(self, redis_store: RedisStore) -> None:
        await redis_store.set("key1", "value", 100)
        remaining = await redis_store.ttl("key1")
        assert remaining is not None
        assert 0 < remaining <= 100
        await asyncio.sleep(0.2)
        assert await redis_store.get("key1") is None

    async def test_ttl_none_without_expiry_or_key(
        self, redis_store: RedisStore
    ) -> None:
        await redis_store.set("key1", "value", 0)
        assert await redis_store.ttl("key1") is None
        assert await redis_store.ttl("missing") is None

    async def test_mset_and_mget(self, redis_store: RedisStore) -> None:
        await redis_store.mset([("a", 1), ("b", 2)], 10_000)
        assert await redis_store.mget("b", "missing", "a") == [2, None, 1]

    async def test_mset_validates_before_writing(
        self, redis_store: RedisStore
    ) -> None:
        with pytest.raises(NotCacheableError):
            await redis_store.mset([("a", 1), ("b", None)])
        assert await redis_store.get("a") is None

    async def test_delete_and_mdel(self, redis_store: RedisStore) -> None:
        await redis_store.mset([("a", 1), ("b", 2), ("c", 3)])
        await redis_store.delete("a")
        await redis_store.mdel("b", "missing")
        assert await redis_store.keys() == ["c"]

    async def test_keys_pattern(self, redis_store: RedisStore) -> None:
        await redis_store.mset([("user:1", 1), ("user:2", 2), ("post:1", 3)])
        assert sorted(await redis_store.keys("user:*")) == ["user:1", "user:2"]

    async def test_reset_only_touches_prefix(self, redis_store: RedisStore) -> None:
        other = RedisStore(redis_store._client, prefix="other")
        await other.set("keep", "me")
        await redis_store.set("key1", "value")

        await redis_store.reset()

        assert await redis_store.get("key1") is None
        assert await other.get("keep") == "me"

    async def test_wrap_over_redis(self, redis_store: RedisStore) -> None:
        cache = Cache(redis_store, ttl="10s")
        calls = 0

        async def fetch() -> dict:
            nonlocal calls
            calls += 1
            return {"n": calls}

        assert await cache.wrap("k", fetch) == {"n": 1}
        assert await cache.wrap("k", fetch) == {"n": 1}
        assert calls == 1
