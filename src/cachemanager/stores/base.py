"""Base store protocol for storage backends."""

from collections.abc import Iterable
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Store(Protocol):
    """Async key/value store with per-entry expiry.

    ``None`` is the "no value" marker: reads return it for missing keys and
    writes of it fail with ``NotCacheableError``. A ``ttl`` of ``None`` on
    writes means the store default, ``0`` means no expiry.
    """

    default_ttl: int | None

    def is_cacheable(self, value: Any) -> bool:
        """Whether ``value`` may be stored."""
        ...

    async def get(self, key: str) -> Any | None:
        """Get a value by key."""
        ...

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store a value."""
        ...

    async def mget(self, *keys: str) -> list[Any | None]:
        """Get several values, in the order of ``keys``."""
        ...

    async def mset(
        self, pairs: Iterable[tuple[str, Any]], ttl: int | None = None
    ) -> None:
        """Store several values; nothing is written if any is uncacheable."""
        ...

    async def delete(self, key: str) -> None:
        """Delete a value. Missing keys are ignored."""
        ...

    async def mdel(self, *keys: str) -> None:
        """Delete several values."""
        ...

    async def keys(self, pattern: str | None = None) -> list[str]:
        """List live keys, optionally filtered by a glob pattern."""
        ...

    async def reset(self) -> None:
        """Remove every entry."""
        ...

    async def ttl(self, key: str) -> int | None:
        """Remaining ms for ``key``; ``None`` if missing or never expiring."""
        ...

    async def disconnect(self) -> None:
        """Release backend resources."""
        ...
