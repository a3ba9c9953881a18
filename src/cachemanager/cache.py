"""Cache façade - one store plus stale-while-revalidate ``wrap``.

This module provides the public cache surface:
- wrap(): Memoized fetch with stampede protection and background refresh
- get(), set(), delete() and their batched forms: Direct store access
- keys(), ttl(), reset(), disconnect(): Inspection and lifecycle
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar, Union

from cachemanager.duration import parse_optional_duration
from cachemanager.errors import NotCacheableError
from cachemanager.inflight import InFlightRegistry
from cachemanager.stores.base import Store
from cachemanager.stores.memory import MemoryStore
from cachemanager.ttl import TTLSpec, resolve_ttl
from cachemanager.types import BackgroundErrorHandler, Duration, Fetcher, TTLFunction
from cachemanager.wrap import WrapEngine

T = TypeVar("T")

StoreFactory = Callable[..., Union[Store, Awaitable[Store]]]


class Cache:
    """Async cache bound to a single store."""

    def __init__(
        self,
        store: Store,
        *,
        ttl: Duration | None = None,
        refresh_threshold: Duration | None = None,
        on_background_error: BackgroundErrorHandler | None = None,
        registry: InFlightRegistry | None = None,
    ) -> None:
        self.store = store
        self._registry = registry if registry is not None else InFlightRegistry()
        self._engine = WrapEngine(
            store,
            registry=self._registry,
            default_ttl=parse_optional_duration(ttl),
            refresh_threshold=parse_optional_duration(refresh_threshold),
            on_background_error=on_background_error,
        )

    async def wrap(
        self,
        key: str,
        fn: Fetcher[T],
        ttl: TTLSpec | Duration | TTLFunction | None = None,
        refresh_threshold: Duration | None = None,
    ) -> T:
        """Fetch with caching, stampede protection, and background refresh.

        Args:
            key: Cache key
            fn: Async function computing the value on miss
            ttl: Milliseconds, duration string, or ``fn(value) -> ms``
            refresh_threshold: Overrides the cache-wide threshold

        Returns:
            Cached or fresh data
        """
        return await self._engine.wrap(
            key, fn, ttl, parse_optional_duration(refresh_threshold)
        )

    async def revalidate(
        self,
        key: str,
        fn: Fetcher[Any],
        ttl: TTLSpec | Duration | TTLFunction | None = None,
        refresh_threshold: Duration | None = None,
    ) -> None:
        """Refresh ``key`` in the background if it is close to expiring."""
        await self._engine.revalidate(
            key, fn, ttl, parse_optional_duration(refresh_threshold)
        )

    async def get(self, key: str) -> Any | None:
        """Get a value, or ``None`` if missing or expired."""
        return await self.store.get(key)

    async def set(
        self,
        key: str,
        value: Any,
        ttl: TTLSpec | Duration | TTLFunction | None = None,
    ) -> None:
        """Store a value. ``None`` raises ``NotCacheableError``."""
        if not self.store.is_cacheable(value):
            raise NotCacheableError(value)
        ttl_ms = resolve_ttl(ttl, value, self._engine.default_ttl)
        await self.store.set(key, value, ttl_ms)

    async def delete(self, key: str) -> None:
        """Delete a value. Missing keys are ignored."""
        await self.store.delete(key)

    async def mget(self, *keys: str) -> list[Any | None]:
        """Get several values, in the order of ``keys``."""
        return await self.store.mget(*keys)

    async def mset(
        self, pairs: Iterable[tuple[str, Any]], ttl: Duration | None = None
    ) -> None:
        """Store several values; the whole batch fails on an uncacheable one."""
        ttl_ms = parse_optional_duration(ttl)
        if ttl_ms is None:
            ttl_ms = self._engine.default_ttl
        await self.store.mset(pairs, ttl_ms)

    async def mdel(self, *keys: str) -> None:
        """Delete several values."""
        await self.store.mdel(*keys)

    async def keys(self, pattern: str | None = None) -> list[str]:
        """List live keys, in no particular order."""
        return await self.store.keys(pattern)

    async def ttl(self, key: str) -> int | None:
        """Remaining milliseconds for ``key``, ``None`` if it never expires."""
        return await self.store.ttl(key)

    async def reset(self) -> None:
        """Clear all cached entries."""
        await self.store.reset()

    async def wait_for_refreshes(self) -> None:
        """Wait for pending background refreshes."""
        await self._engine.wait_for_refreshes()

    async def disconnect(self) -> None:
        """Disconnect from the storage backend."""
        await self.store.disconnect()


def _call_factory(factory: StoreFactory, options: dict[str, Any]) -> Any:
    """Call a store factory the way its signature accepts the options.

    No parameters: called bare. Keyword parameters only (``**options`` or a
    store class such as ``MemoryStore``): options passed as keywords.
    Otherwise the options dict is the single positional argument.
    """
    params = list(inspect.signature(factory).parameters.values())
    if not params:
        return factory()
    positional = (
        inspect.Parameter.POSITIONAL_ONLY,
        inspect.Parameter.POSITIONAL_OR_KEYWORD,
        inspect.Parameter.VAR_POSITIONAL,
    )
    if not any(param.kind in positional for param in params):
        return factory(**options)
    return factory(options)


async def create_cache(
    store: str | Store | StoreFactory = "memory",
    *,
    ttl: Duration | None = None,
    refresh_threshold: Duration | None = None,
    max_items: int | None = None,
    clone: bool = True,
    is_cacheable: Callable[[Any], bool] | None = None,
    on_background_error: BackgroundErrorHandler | None = None,
) -> Cache:
    """Create a cache.

    Args:
        store: ``"memory"``, a store instance, or a factory (sync or async)
            taking no arguments, the options dict, or the options as keywords
        ttl: Default time to live
        refresh_threshold: Remaining TTL below which hits refresh in background
        max_items: LRU bound for the memory store
        clone: Deep-copy values on write (memory store)
        is_cacheable: Predicate for storable values (memory store); these three
            raise ValueError alongside a store instance
        on_background_error: Called with each ``BackgroundRefreshError``

    Returns:
        Cache instance with wrap, get, set, delete, mget, mset, mdel, reset
    """
    ttl_ms = parse_optional_duration(ttl)
    threshold_ms = parse_optional_duration(refresh_threshold)
    options: dict[str, Any] = {
        "ttl": ttl_ms,
        "max_items": max_items,
        "clone": clone,
        "is_cacheable": is_cacheable,
    }

    if store == "memory":
        resolved: Store = MemoryStore(**options)
        # The store already applies the default TTL
        cache_ttl = None
    elif isinstance(store, str):
        raise ValueError(f"Unknown store: {store!r}")
    elif isinstance(store, Store):
        if max_items is not None or not clone or is_cacheable is not None:
            raise ValueError(
                "max_items, clone and is_cacheable configure a new store; "
                "set them on the store instance instead"
            )
        resolved = store
        cache_ttl = ttl_ms
    elif callable(store):
        made = _call_factory(store, options)
        resolved = await made if inspect.isawaitable(made) else made
        cache_ttl = ttl_ms
    else:
        raise TypeError(f"Expected a store name, store or factory, got {store!r}")

    return Cache(
        resolved,
        ttl=cache_ttl,
        refresh_threshold=threshold_ms,
        on_background_error=on_background_error,
    )


__all__ = ["Cache", "create_cache"]
