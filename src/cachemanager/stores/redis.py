"""Redis store."""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any

from cachemanager.duration import parse_optional_duration
from cachemanager.errors import NotCacheableError
from cachemanager.types import Duration


def _serialize(value: Any) -> str:
    """Serialize a value to JSON."""
    return json.dumps(value)


def _deserialize(data: bytes | str | None) -> Any | None:
    """Deserialize JSON to a value."""
    if data is None:
        return None
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    return json.loads(data)


class RedisStore:
    """Async Redis store. Values must be JSON serializable."""

    def __init__(
        self,
        client: Any,  # redis.asyncio.Redis
        *,
        prefix: str = "cache",
        ttl: Duration | None = None,
    ) -> None:
        self._client = client
        self._prefix = prefix
        self.default_ttl = parse_optional_duration(ttl)

    def _cache_key(self, key: str) -> str:
        """Generate full Redis key for a cache entry."""
        return f"{self._prefix}:{key}"

    def _strip(self, raw: bytes | str) -> str:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return raw[len(self._prefix) + 1 :]

    def _px(self, ttl: int | None) -> int | None:
        ttl = self.default_ttl if ttl is None else ttl
        return ttl or None

    def is_cacheable(self, value: Any) -> bool:
        """Whether ``value`` may be stored."""
        return value is not None

    async def get(self, key: str) -> Any | None:
        """Get a value by key."""
        return _deserialize(await self._client.get(self._cache_key(key)))

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store a value with automatic expiration."""
        if not self.is_cacheable(value):
            raise NotCacheableError(value)
        await self._client.set(
            self._cache_key(key), _serialize(value), px=self._px(ttl)
        )

    async def mget(self, *keys: str) -> list[Any | None]:
        """Get several values, in the order of ``keys``."""
        if not keys:
            return []
        raw = await self._client.mget([self._cache_key(key) for key in keys])
        return [_deserialize(data) for data in raw]

    async def mset(
        self, pairs: Iterable[tuple[str, Any]], ttl: int | None = None
    ) -> None:
        """Store several values in one pipeline."""
        pairs = list(pairs)
        for _, value in pairs:
            if not self.is_cacheable(value):
                raise NotCacheableError(value)
        if not pairs:
            return
        px = self._px(ttl)
        async with self._client.pipeline(transaction=True) as pipe:
            for key, value in pairs:
                pipe.set(self._cache_key(key), _serialize(value), px=px)
            await pipe.execute()

    async def delete(self, key: str) -> None:
        """Delete a value."""
        await self._client.delete(self._cache_key(key))

    async def mdel(self, *keys: str) -> None:
        """Delete several values."""
        if keys:
            await self._client.delete(*(self._cache_key(key) for key in keys))

    async def _scan(self, pattern: str) -> list[bytes | str]:
        found: list[bytes | str] = []
        cursor: int = 0
        while True:
            cursor, batch = await self._client.scan(cursor, match=pattern, count=100)
            found.extend(batch)
            if cursor == 0:
                break
        return found

    async def keys(self, pattern: str | None = None) -> list[str]:
        """List live keys, optionally filtered by a glob pattern."""
        raw = await self._scan(self._cache_key(pattern or "*"))
        # SCAN may return a key more than once
        return list(dict.fromkeys(self._strip(key) for key in raw))

    async def reset(self) -> None:
        """Delete every key under this store's prefix."""
        keys = await self._scan(self._cache_key("*"))
        if keys:
            await self._client.delete(*keys)

    async def ttl(self, key: str) -> int | None:
        """Remaining ms for ``key``; ``None`` if missing or never expiring."""
        remaining = await self._client.pttl(self._cache_key(key))
        # -2: no such key, -1: no expiry
        if remaining < 0:
            return None
        return int(remaining)

    async def disconnect(self) -> None:
        """Close the Redis connection."""
        await self._client.aclose()


__all__ = ["RedisStore"]
