"""Stale-while-revalidate memoization over a store."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, TypeVar

from cachemanager.errors import BackgroundRefreshError, NotCacheableError
from cachemanager.inflight import InFlightRegistry
from cachemanager.stores.base import Store
from cachemanager.ttl import TTLSpec, as_ttl_spec, resolve_ttl
from cachemanager.types import BackgroundErrorHandler, Duration, Fetcher, TTLFunction

logger = logging.getLogger(__name__)

T = TypeVar("T")


class WrapEngine:
    """Decides between serving, refreshing and computing a cached value."""

    def __init__(
        self,
        store: Store,
        *,
        registry: InFlightRegistry | None = None,
        default_ttl: int | None = None,
        refresh_threshold: int | None = None,
        on_background_error: BackgroundErrorHandler | None = None,
    ) -> None:
        self._store = store
        self._registry = registry if registry is not None else InFlightRegistry()
        self._default_ttl = default_ttl
        self._refresh_threshold = refresh_threshold
        self._on_background_error = on_background_error
        self._background_tasks: set[asyncio.Task[None]] = set()

    @property
    def registry(self) -> InFlightRegistry:
        return self._registry

    @property
    def default_ttl(self) -> int | None:
        """Engine default, falling back to the store's."""
        if self._default_ttl is not None:
            return self._default_ttl
        return self._store.default_ttl

    async def wrap(
        self,
        key: str,
        fn: Fetcher[T],
        ttl: TTLSpec | Duration | TTLFunction | None = None,
        refresh_threshold: int | None = None,
    ) -> T:
        """Return the cached value for ``key``, computing it with ``fn`` on miss.

        Args:
            key: Cache key
            fn: Async function producing the value
            ttl: TTL for a computed value (default: engine/store default)
            refresh_threshold: Remaining-TTL cutoff (ms) below which a hit
                also starts a background refresh

        Returns:
            Cached or freshly computed value

        Raises:
            NotCacheableError: If ``fn`` produced an uncacheable value
            TTLResolutionError: If a TTL function failed
        """
        spec = as_ttl_spec(ttl)
        cached = await self._store.get(key)
        if cached is not None:
            await self.revalidate(key, fn, spec, refresh_threshold)
            return cached

        return await self._registry.run(key, lambda: self._populate(key, fn, spec))

    async def revalidate(
        self,
        key: str,
        fn: Fetcher[Any],
        ttl: TTLSpec | Duration | TTLFunction | None = None,
        refresh_threshold: int | None = None,
    ) -> None:
        """Start a background refresh of a hit whose remaining TTL is low.

        Never computes synchronously, so a caller already holding the cached
        value can use it without a second read racing expiry.
        """
        threshold = (
            refresh_threshold
            if refresh_threshold is not None
            else self._refresh_threshold
        )
        if not threshold:
            return
        remaining = await self._store.ttl(key)
        if remaining is not None and remaining < threshold:
            self._refresh_in_background(key, fn, as_ttl_spec(ttl))

    async def wait_for_refreshes(self) -> None:
        """Wait until currently scheduled background refreshes finish."""
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    async def _populate(self, key: str, fn: Fetcher[T], spec: TTLSpec | None) -> T:
        value = await fn()
        if not self._store.is_cacheable(value):
            raise NotCacheableError(value)
        ttl_ms = resolve_ttl(spec, value, self.default_ttl)
        await self._store.set(key, value, ttl_ms)
        return value

    def _refresh_in_background(
        self, key: str, fn: Fetcher[Any], spec: TTLSpec | None
    ) -> None:
        """Refresh ``key`` in a detached task unless a computation is running."""
        is_owner, _ = self._registry.acquire_or_join(key)
        if not is_owner:
            return

        logger.debug("Scheduling background refresh for %s", key)
        task = asyncio.create_task(self._refresh(key, fn, spec))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _refresh(self, key: str, fn: Fetcher[Any], spec: TTLSpec | None) -> None:
        try:
            await self._registry.settle(key, lambda: self._populate(key, fn, spec))
        except Exception as e:
            error = BackgroundRefreshError(key, e)
            logger.warning("%s", error)
            if self._on_background_error is not None:
                self._on_background_error(error)


__all__ = ["WrapEngine"]
