from __future__ import annotations

import re
from datetime import timedelta

from gator.errors import InvalidDuration

_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_PART = r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)"
_PART_RE = re.compile(_PART)
_DURATION_RE = re.compile(rf"(?:{_PART})+")


def parse_duration(value: str) -> timedelta:
    """
    Parse a Go-style duration such as "30s", "1m", "1h30m" or "1.5s".
    Only positive durations are accepted.
    """
    s = (value or "").strip()
    if not _DURATION_RE.fullmatch(s):
        raise InvalidDuration(value)

    seconds = sum(float(num) * _UNIT_SECONDS[unit] for num, unit in _PART_RE.findall(s))
    if seconds <= 0:
        raise InvalidDuration(value)
    return timedelta(seconds=seconds)
