"""TTL specifications and their resolution to milliseconds."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Union

from cachemanager.duration import parse_duration
from cachemanager.errors import TTLResolutionError
from cachemanager.types import Duration, TTLFunction


@dataclass(frozen=True, slots=True)
class FixedTTL:
    """A constant TTL in milliseconds. ``0`` means no expiry."""

    ms: int

    def __post_init__(self) -> None:
        if isinstance(self.ms, bool) or not isinstance(self.ms, int) or self.ms < 0:
            raise ValueError(f"TTL must be a non-negative int, got {self.ms!r}")


@dataclass(frozen=True, slots=True)
class ComputedTTL:
    """A TTL derived from the value being cached."""

    fn: TTLFunction


TTLSpec = Union[FixedTTL, ComputedTTL]


def as_ttl_spec(ttl: TTLSpec | Duration | TTLFunction | None) -> TTLSpec | None:
    """Normalize a caller-supplied TTL into a ``TTLSpec``.

    Accepts an existing spec, a duration (int ms, "5m", timedelta), or a
    callable taking the value. ``None`` stays ``None``.
    """
    if ttl is None or isinstance(ttl, (FixedTTL, ComputedTTL)):
        return ttl
    if callable(ttl):
        return ComputedTTL(ttl)
    return FixedTTL(parse_duration(ttl))


def _check_ms(ms: Any) -> int:
    if isinstance(ms, bool) or not isinstance(ms, (int, float)):
        raise TTLResolutionError(f"TTL function returned {ms!r}, expected ms")
    if not math.isfinite(ms) or ms < 0:
        raise TTLResolutionError(f"TTL function returned {ms!r}, expected ms")
    return int(ms)


def resolve_ttl(
    spec: TTLSpec | Duration | TTLFunction | None,
    value: Any,
    default: int | None = None,
) -> int:
    """Resolve ``spec`` to a concrete TTL in milliseconds for ``value``.

    Args:
        spec: TTL to resolve; ``None`` falls back to ``default``
        value: The freshly computed value (passed to computed TTLs)
        default: Fallback TTL; ``None`` means no expiry

    Returns:
        Non-negative milliseconds, ``0`` meaning no expiry

    Raises:
        TTLResolutionError: If a computed TTL raises or returns garbage
    """
    resolved = as_ttl_spec(spec)
    if resolved is None:
        return default if default is not None else 0
    if isinstance(resolved, FixedTTL):
        return resolved.ms

    try:
        ms = resolved.fn(value)
    except Exception as e:
        raise TTLResolutionError(f"TTL function raised {e!r}") from e
    return _check_ms(ms)


__all__ = ["ComputedTTL", "FixedTTL", "TTLSpec", "as_ttl_spec", "resolve_ttl"]
