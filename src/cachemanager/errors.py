"""Exceptions raised by cachemanager."""

from __future__ import annotations

from typing import Any


class CacheError(Exception):
    """Base class for cachemanager errors."""


class NotCacheableError(CacheError, ValueError):
    """Raised when a value the store refuses to hold is written."""

    def __init__(self, value: Any) -> None:
        super().__init__(f"no cacheable value {value!r}")
        self.value = value


class TTLResolutionError(CacheError):
    """Raised when a TTL function fails or returns an unusable duration."""


class BackgroundRefreshError(CacheError):
    """Failure of a stale-while-revalidate refresh.

    Never raised to callers of ``wrap``; it is logged and handed to the
    ``on_background_error`` hook. The original exception is ``__cause__``.
    """

    def __init__(self, key: str, cause: BaseException) -> None:
        super().__init__(f"background refresh failed for {key!r}: {cause!r}")
        self.key = key
        self.__cause__ = cause
