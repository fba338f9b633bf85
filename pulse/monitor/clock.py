"""Clock helpers so time can be pinned in tests."""

from __future__ import annotations

import time
from typing import Callable

# Returns epoch seconds, like time.time()
Clock = Callable[[], float]


def system_clock() -> float:
    return time.time()


def epoch_seconds(clock: Clock) -> int:
    return int(clock())


def epoch_millis(clock: Clock) -> int:
    return int(clock() * 1000)
