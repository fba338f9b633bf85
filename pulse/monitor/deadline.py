"""
Deadline Evaluation

Pure functions deciding whether a check has missed its ping window.
All arithmetic is integer epoch milliseconds.
"""

from __future__ import annotations

from pulse.monitor.duration import parse_duration
from pulse.monitor.models import Check, CheckStatus


def reference_time(check: Check) -> int | None:
    """
    Get the instant the ping window is measured from, in milliseconds.

    New checks are measured from their creation, everything else from the
    last ping (or explicit failure). Returns None when that timestamp is
    missing or zero.
    """
    if check.status == CheckStatus.NEW and check.created_at:
        return check.created_at * 1000
    if check.last_ping_at:
        return check.last_ping_at * 1000
    return None


def compute_deadline(check: Check) -> int | None:
    """Get the last instant (ms) at which the check is still on time."""
    reference = reference_time(check)
    if reference is None:
        return None
    return reference + parse_duration(check.schedule) + parse_duration(check.grace)


def is_overdue(check: Check, now_ms: int) -> bool:
    """
    Check whether ``now_ms`` is past the check's deadline.

    The deadline instant itself is still on time. A check whose deadline
    cannot be determined is never overdue.
    """
    deadline = compute_deadline(check)
    if deadline is None:
        return False
    return now_ms > deadline
