"""Core types for cachemanager."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(slots=True)
class CacheEntry(Generic[T]):
    """A stored value with its expiry."""

    value: T
    expires_at: float | None  # Store clock ms, None = no expiry


# Duration type alias
Duration = str | int | timedelta  # "30s", "5m", "2h", "1d" or milliseconds

# Zero-argument coroutine function computing a value to cache
Fetcher = Callable[[], Awaitable[T]]

# Computes a TTL in milliseconds from the value about to be cached
TTLFunction = Callable[[Any], int | float]

BackgroundErrorHandler = Callable[[BaseException], None]
