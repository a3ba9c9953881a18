"""Duration parsing utilities."""

import re
from datetime import timedelta

from cachemanager.types import Duration

_DURATION_PATTERN = re.compile(r"^(\d+)(ms|s|m|h|d)$")
_UNITS: dict[str, int] = {
    "ms": 1,
    "s": 1000,
    "m": 60_000,
    "h": 3_600_000,
    "d": 86_400_000,
}


def parse_duration(duration: Duration) -> int:
    """Parse a duration to milliseconds.

    Integers are milliseconds and pass through; strings use a unit suffix
    ("250ms", "30s", "5m", "2h", "1d"); ``timedelta`` is converted.
    """
    if isinstance(duration, bool):
        raise ValueError(f"Invalid duration: {duration!r}")

    if isinstance(duration, int):
        if duration < 0:
            raise ValueError(f"Duration must be non-negative: {duration!r}")
        return duration

    if isinstance(duration, timedelta):
        ms = int(duration.total_seconds() * 1000)
        if ms < 0:
            raise ValueError(f"Duration must be non-negative: {duration!r}")
        return ms

    match = _DURATION_PATTERN.match(duration)
    if not match:
        raise ValueError(f"Invalid duration: {duration!r}")

    value, unit = match.groups()
    return int(value) * _UNITS[unit]


def parse_optional_duration(duration: Duration | None) -> int | None:
    """Like ``parse_duration`` but lets ``None`` through."""
    return parse_duration(duration) if duration is not None else None
