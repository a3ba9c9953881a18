"""Multi-tier caching across an ordered list of caches."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence
from typing import Any, TypeVar, cast

from cachemanager.cache import Cache
from cachemanager.errors import NotCacheableError
from cachemanager.inflight import InFlightRegistry
from cachemanager.ttl import ComputedTTL, FixedTTL, TTLSpec, as_ttl_spec, resolve_ttl
from cachemanager.types import Duration, Fetcher, TTLFunction

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MultiCache:
    """Fans cache operations out over several tiers, fastest first.

    Reads stop at the first tier holding the key; writes and deletes go to
    every tier.
    """

    def __init__(self, caches: Sequence[Cache]) -> None:
        if not caches:
            raise ValueError("MultiCache needs at least one cache")
        self._caches = list(caches)
        self._registry = InFlightRegistry()

    @property
    def caches(self) -> list[Cache]:
        return list(self._caches)

    async def get(self, key: str) -> Any | None:
        """Return the value from the first tier that has it."""
        for cache in self._caches:
            value = await cache.get(key)
            if value is not None:
                return value
        return None

    async def set(
        self,
        key: str,
        value: Any,
        ttl: TTLSpec | Duration | TTLFunction | None = None,
    ) -> None:
        """Write to every tier."""
        await asyncio.gather(*(cache.set(key, value, ttl) for cache in self._caches))

    async def mget(self, *keys: str) -> list[Any | None]:
        """Fill each slot from the first tier that has the key."""
        values: list[Any | None] = [None] * len(keys)
        for cache in self._caches:
            missing = [i for i, value in enumerate(values) if value is None]
            if not missing:
                break
            found = await cache.mget(*(keys[i] for i in missing))
            for i, value in zip(missing, found):
                values[i] = value
        return values

    async def mset(
        self, pairs: Iterable[tuple[str, Any]], ttl: Duration | None = None
    ) -> None:
        """Write several values to every tier."""
        pairs = list(pairs)
        await asyncio.gather(*(cache.mset(pairs, ttl) for cache in self._caches))

    async def delete(self, key: str) -> None:
        """Delete from every tier."""
        await asyncio.gather(*(cache.delete(key) for cache in self._caches))

    async def mdel(self, *keys: str) -> None:
        """Delete several keys from every tier."""
        await asyncio.gather(*(cache.mdel(*keys) for cache in self._caches))

    async def reset(self) -> None:
        """Clear every tier."""
        await asyncio.gather(*(cache.reset() for cache in self._caches))

    async def wrap(
        self,
        key: str,
        fn: Fetcher[T],
        ttl: TTLSpec | Duration | TTLFunction | None = None,
        refresh_threshold: Duration | None = None,
    ) -> T:
        """Memoize ``fn`` across tiers.

        A hit is served as read, revalidated by the holding tier so its
        refresh threshold applies, then copied into the faster tiers. A
        miss everywhere computes once and writes every tier.
        """
        for index, cache in enumerate(self._caches):
            value = await cache.get(key)
            if value is not None:
                break
        else:
            return await self._registry.run(key, lambda: self._populate(key, fn, ttl))

        await cache.revalidate(key, fn, ttl, refresh_threshold)
        if index:
            logger.debug("Back-filling %s into %d faster tier(s)", key, index)
            # A computed TTL only runs for fresh computations, so copies of
            # a hit fall back to each tier's default.
            spec = as_ttl_spec(ttl)
            backfill_ttl = spec if isinstance(spec, FixedTTL) else None
            await asyncio.gather(
                *(tier.set(key, value, backfill_ttl) for tier in self._caches[:index])
            )
        return cast(T, value)

    async def _populate(
        self, key: str, fn: Fetcher[T], ttl: TTLSpec | Duration | TTLFunction | None
    ) -> T:
        value = await fn()
        if not all(cache.store.is_cacheable(value) for cache in self._caches):
            raise NotCacheableError(value)
        spec = as_ttl_spec(ttl)
        if isinstance(spec, ComputedTTL):
            # Resolve once so every tier shares one evaluation
            spec = FixedTTL(resolve_ttl(spec, value))
        await self.set(key, value, spec)
        return value


def multi_caching(caches: Sequence[Cache]) -> MultiCache:
    """Combine caches into one multi-tier cache."""
    return MultiCache(caches)


__all__ = ["MultiCache", "multi_caching"]
