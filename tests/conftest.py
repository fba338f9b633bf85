"""
Pytest configuration and shared fixtures.
"""

from pathlib import Path
from typing import Iterator

import pytest

from pulse.monitor import (
    Check,
    CheckMetrics,
    CheckService,
    CheckStatus,
    CheckStore,
    ListCache,
    StatusEngine,
)

# 2023-11-14 22:13:20 UTC
T0 = 1_700_000_000


class FakeClock:
    """Settable clock returning epoch seconds."""

    def __init__(self, start: float = T0) -> None:
        self.now = float(start)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_check(**overrides) -> Check:
    """Build a check without touching the store."""
    fields = {
        "id": 1,
        "token": "token-1",
        "name": "nightly-backup",
        "schedule": "10m",
        "grace": "2m",
        "status": CheckStatus.NEW,
        "created_at": 1000,
    }
    fields.update(overrides)
    return Check(**fields)


@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at T0 until advanced."""
    return FakeClock()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "pulse.db"


@pytest.fixture
def store(db_path: Path) -> Iterator[CheckStore]:
    """Open check store on a fresh database file."""
    s = CheckStore(db_path)
    s.open()
    yield s
    s.close()


@pytest.fixture
def metrics() -> CheckMetrics:
    """Metrics on a private registry, without process collectors."""
    return CheckMetrics(include_process_metrics=False)


@pytest.fixture
def cache(clock: FakeClock) -> ListCache:
    return ListCache(ttl_seconds=10.0, clock=clock)


@pytest.fixture
def service(store: CheckStore, metrics: CheckMetrics, cache: ListCache, clock: FakeClock) -> CheckService:
    return CheckService(store, metrics, cache, clock)


@pytest.fixture
def engine(store: CheckStore, metrics: CheckMetrics, cache: ListCache, clock: FakeClock) -> StatusEngine:
    return StatusEngine(store, metrics, cache, clock)
