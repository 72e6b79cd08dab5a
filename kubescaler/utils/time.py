"""Manages duration parsing and timeout-bounded calls."""

import asyncio
import math
import re

import async_timeout

from kubescaler.errors import TransientError

_DURATION_UNITS = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 1e-3, "us": 1e-6, "µs": 1e-6, "ns": 1e-9}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ms|us|µs|ns|h|m|s)")

def parse_duration(value):
    """
    Converts a duration into seconds. Accepts numbers (seconds), numeric strings,
    and Go-style strings such as "500ms", "30s" or "1m30s".
    """

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)

    text = str(value).strip()
    try:
        seconds = float(text)
    except ValueError:
        pass
    else:
        if not math.isfinite(seconds):
            raise ValueError(f"invalid duration: {value!r}")
        return seconds

    pos, total = 0, 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()

    if not text or pos != len(text):
        raise ValueError(f"invalid duration: {value!r}")
    return total

async def call_with_timeout(coro, timeout, what="call"):
    """Awaits `coro`, turning an expired `timeout` into a TransientError."""

    try:
        async with async_timeout.timeout(timeout):
            return await coro
    except asyncio.TimeoutError as e:
        raise TransientError(f"{what} timed out after {timeout:g}s") from e
