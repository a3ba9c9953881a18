"""In-memory store with LRU eviction and per-entry expiry."""

import asyncio
import copy
import fnmatch
import time
from collections import OrderedDict
from collections.abc import Callable, Iterable
from typing import Any

from cachemanager.duration import parse_optional_duration
from cachemanager.errors import NotCacheableError
from cachemanager.types import CacheEntry, Duration


def _default_is_cacheable(value: Any) -> bool:
    return value is not None


class MemoryStore:
    """Async in-memory store with optional LRU eviction.

    Expired entries are dropped lazily when read or listed.
    """

    def __init__(
        self,
        *,
        ttl: Duration | None = None,
        max_items: int | None = None,
        clone: bool = True,
        is_cacheable: Callable[[Any], bool] | None = None,
    ) -> None:
        if max_items is not None and max_items < 1:
            raise ValueError("max_items must be at least 1")
        self.default_ttl = parse_optional_duration(ttl)
        self._cache: OrderedDict[str, CacheEntry[Any]] = OrderedDict()
        self._max_items = max_items
        self._clone = clone
        self._is_cacheable = is_cacheable or _default_is_cacheable
        self._lock = asyncio.Lock()

    def _now(self) -> float:
        return time.monotonic() * 1000

    def _expires_at(self, ttl: int | None) -> float | None:
        ttl = self.default_ttl if ttl is None else ttl
        if not ttl:
            return None
        return self._now() + ttl

    def _live(self, key: str) -> CacheEntry[Any] | None:
        """Return the entry for ``key``, evicting it if expired."""
        entry = self._cache.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and entry.expires_at <= self._now():
            del self._cache[key]
            return None
        return entry

    def _write(self, key: str, value: Any, expires_at: float | None) -> None:
        if self._clone:
            value = copy.deepcopy(value)
        self._cache[key] = CacheEntry(value=value, expires_at=expires_at)
        self._cache.move_to_end(key)
        if self._max_items and len(self._cache) > self._max_items:
            self._cache.popitem(last=False)

    def is_cacheable(self, value: Any) -> bool:
        """Whether ``value`` may be stored."""
        return self._is_cacheable(value)

    @property
    def size(self) -> int:
        """Number of entries, including expired ones not yet evicted."""
        return len(self._cache)

    async def get(self, key: str) -> Any | None:
        """Get a value by key."""
        async with self._lock:
            entry = self._live(key)
            if entry is None:
                return None
            self._cache.move_to_end(key)  # LRU touch
            return entry.value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store a value."""
        if not self.is_cacheable(value):
            raise NotCacheableError(value)
        async with self._lock:
            self._write(key, value, self._expires_at(ttl))

    async def mget(self, *keys: str) -> list[Any | None]:
        """Get several values, in the order of ``keys``."""
        return [await self.get(key) for key in keys]

    async def mset(
        self, pairs: Iterable[tuple[str, Any]], ttl: int | None = None
    ) -> None:
        """Store several values; nothing is written if any is uncacheable."""
        pairs = list(pairs)
        for _, value in pairs:
            if not self.is_cacheable(value):
                raise NotCacheableError(value)
        async with self._lock:
            expires_at = self._expires_at(ttl)
            for key, value in pairs:
                self._write(key, value, expires_at)

    async def delete(self, key: str) -> None:
        """Delete a value."""
        async with self._lock:
            self._cache.pop(key, None)

    async def mdel(self, *keys: str) -> None:
        """Delete several values."""
        async with self._lock:
            for key in keys:
                self._cache.pop(key, None)

    async def keys(self, pattern: str | None = None) -> list[str]:
        """List live keys, optionally filtered by a glob pattern."""
        async with self._lock:
            live = [key for key in list(self._cache) if self._live(key) is not None]
        if pattern is None:
            return live
        return [key for key in live if fnmatch.fnmatchcase(key, pattern)]

    async def reset(self) -> None:
        """Remove every entry."""
        async with self._lock:
            self._cache.clear()

    async def ttl(self, key: str) -> int | None:
        """Remaining ms for ``key``; ``None`` if missing or never expiring."""
        async with self._lock:
            entry = self._live(key)
            if entry is None or entry.expires_at is None:
                return None
            return max(int(entry.expires_at - self._now()), 0)

    async def dump(self) -> list[tuple[str, Any, int | None]]:
        """Snapshot live entries as ``(key, value, remaining_ttl_ms)``."""
        async with self._lock:
            now = self._now()
            snapshot = []
            for key in list(self._cache):
                entry = self._live(key)
                if entry is None:
                    continue
                remaining = (
                    None
                    if entry.expires_at is None
                    else max(int(entry.expires_at - now), 1)
                )
                snapshot.append((key, entry.value, remaining))
            return snapshot

    async def load(self, entries: Iterable[tuple[str, Any, int | None]]) -> None:
        """Restore entries produced by ``dump``."""
        entries = list(entries)
        for _, value, _ in entries:
            if not self.is_cacheable(value):
                raise NotCacheableError(value)
        async with self._lock:
            for key, value, remaining in entries:
                # None in a dump means no expiry, not the store default
                expires_at = None if remaining is None else self._expires_at(remaining)
                self._write(key, value, expires_at)

    async def disconnect(self) -> None:
        """Disconnect from the storage backend (no-op for memory)."""
        pass


__all__ = ["MemoryStore"]
