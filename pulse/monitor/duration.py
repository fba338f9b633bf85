"""
Duration Parsing

Converts interval strings such as "30s", "10m" or "1d" to milliseconds.
"""

from __future__ import annotations

import re
from typing import Any

_DURATION_RE = re.compile(r"([0-9]+)(ms|s|m|h|d)", re.ASCII)

UNIT_MS = {
    "ms": 1,
    "s": 1000,
    "m": 60 * 1000,
    "h": 60 * 60 * 1000,
    "d": 24 * 60 * 60 * 1000,
}


def parse_duration(value: Any) -> int:
    """
    Parse a duration string into milliseconds.

    Anything that is not ``<digits><unit>`` (unit one of ms, s, m, h, d)
    parses to 0. A zero schedule or grace pulls the deadline back to the
    reference time, so a misconfigured check shows up as down instead of
    never being monitored.

    Args:
        value: The duration string, e.g. "10m"

    Returns:
        Duration in milliseconds, or 0 when the value is malformed
    """
    if not isinstance(value, str):
        return 0

    match = _DURATION_RE.fullmatch(value)
    if not match:
        return 0

    amount, unit = match.groups()
    return int(amount) * UNIT_MS[unit]


def format_duration(ms: int) -> str:
    """Format milliseconds using the largest unit that divides them exactly."""
    if ms <= 0:
        return "0s"
    for unit in ("d", "h", "m", "s"):
        if ms % UNIT_MS[unit] == 0:
            return f"{ms // UNIT_MS[unit]}{unit}"
    return f"{ms}ms"
