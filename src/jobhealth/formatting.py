"""
Field formatting helpers for health log lines.

Renders durations, key/value metadata and timestamps. Nothing here escapes
its input: callers keep ':' ']' and spaces out of keys and values if the
lines need to be parsed back.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

from datetime import datetime, timezone
from typing import Mapping, Optional

# Smallest unit first; each step is a factor of 1000
DURATION_UNITS = ("ns", "μs", "ms", "s")

# Largest magnitude shown before moving up a unit
_MAX_MAGNITUDE = 10_000


def format_nanoseconds(duration_ns: int) -> str:
    """Render a nanosecond count with the smallest readable unit.

    The value is divided by 1000 (truncating) for as long as it is 10,000
    or more at the current unit. Seconds is the last unit, so very long
    durations are reported as a large number of seconds.

    Examples:
        >>> format_nanoseconds(1_204_000)
        '1204 μs'
        >>> format_nanoseconds(34_567_890)
        '34 ms'
    """
    if isinstance(duration_ns, bool) or not isinstance(duration_ns, int):
        raise TypeError(f"duration must be an int, got {type(duration_ns).__name__}")
    if duration_ns < 0:
        raise ValueError(f"duration must not be negative, got {duration_ns}")

    magnitude = duration_ns
    unit_index = 0
    while magnitude >= _MAX_MAGNITUDE and unit_index < len(DURATION_UNITS) - 1:
        magnitude //= 1000
        unit_index += 1

    return f"{magnitude} {DURATION_UNITS[unit_index]}"


def render_kvs(kvs: Optional[Mapping[str, str]]) -> str:
    """Render metadata as space separated key:value pairs, sorted by key."""
    if not kvs:
        return ""
    return " ".join(f"{key}:{kvs[key]}" for key in sorted(kvs))


def timestamp() -> str:
    """Current UTC time in ISO 8601 form."""
    return datetime.now(timezone.utc).isoformat()
