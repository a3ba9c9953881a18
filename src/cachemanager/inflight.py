"""In-flight registry for stampede protection."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InFlightRegistry:
    """Maps cache keys to the one pending computation for that key.

    ``acquire_or_join`` never awaits, so on a single event loop the lookup
    and insert happen atomically: two callers for the same key can never
    both become owner. Whoever owns a record must settle it with
    ``resolve``, ``reject`` or ``cancel``, which also removes it.
    """

    def __init__(self) -> None:
        self._records: dict[str, asyncio.Future[Any]] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __len__(self) -> int:
        return len(self._records)

    def acquire_or_join(self, key: str) -> tuple[bool, asyncio.Future[Any]]:
        """Return ``(is_owner, handle)`` for ``key``."""
        existing = self._records.get(key)
        if existing is not None:
            logger.debug("Joining in-flight computation for %s", key)
            return False, existing

        handle: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._records[key] = handle
        return True, handle

    def resolve(self, key: str, value: Any) -> None:
        """Share ``value`` with every joiner and drop the record."""
        handle = self._records.pop(key, None)
        if handle is not None and not handle.done():
            handle.set_result(value)

    def reject(self, key: str, exc: BaseException) -> None:
        """Share ``exc`` with every joiner and drop the record."""
        handle = self._records.pop(key, None)
        if handle is not None and not handle.done():
            handle.set_exception(exc)
            # Joiners still see the exception; this only stops asyncio from
            # warning when nobody joined.
            handle.exception()

    def cancel(self, key: str) -> None:
        """Cancel joiners of an owner that was itself cancelled."""
        handle = self._records.pop(key, None)
        if handle is not None and not handle.done():
            handle.cancel()

    async def run(self, key: str, compute: Callable[[], Awaitable[T]]) -> T:
        """Run ``compute`` once per key, sharing the outcome with joiners."""
        is_owner, handle = self.acquire_or_join(key)
        if not is_owner:
            # Shielded so a cancelled joiner leaves the shared handle alone
            result: T = await asyncio.shield(handle)
            return result
        return await self.settle(key, compute)

    async def settle(self, key: str, compute: Callable[[], Awaitable[T]]) -> T:
        """Run ``compute`` as owner of ``key`` and settle its record."""
        try:
            value = await compute()
        except asyncio.CancelledError:
            self.cancel(key)
            raise
        except BaseException as e:
            self.reject(key, e)
            raise
        self.resolve(key, value)
        return value


__all__ = ["InFlightRegistry"]
