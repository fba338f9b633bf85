"""
Tests for the monitor scheduler.
"""

import asyncio

import pytest

from pulse.monitor import (
    CheckService,
    CheckStatus,
    CheckStore,
    MonitorScheduler,
    StatusEngine,
    SummaryNotifier,
)
from pulse.monitor.scheduler import ENGINE_JOB_ID, SUMMARY_JOB_ID

from tests.conftest import FakeClock


class NullDelivery:
    async def deliver(self, summary) -> None:
        return None


@pytest.fixture
def notifier(store: CheckStore) -> SummaryNotifier:
    return SummaryNotifier(store, NullDelivery())


class TestMonitorScheduler:
    """Tests for MonitorScheduler."""

    @pytest.mark.asyncio
    async def test_engine_runs_immediately(
        self, service: CheckService, engine: StatusEngine, store: CheckStore, clock: FakeClock
    ) -> None:
        """Test the first engine cycle runs at start, not after one interval."""
        check = await service.create("backup", "1m", "0s")
        clock.advance(61)

        scheduler = MonitorScheduler(engine, evaluation_interval_seconds=3600)
        await scheduler.start()
        try:
            assert scheduler.is_running
            for _ in range(50):
                if (await store.get_by_token(check.token)).status == CheckStatus.DOWN:
                    break
                await asyncio.sleep(0.05)
            assert (await store.get_by_token(check.token)).status == CheckStatus.DOWN
        finally:
            await scheduler.stop()

        assert not scheduler.is_running
        assert scheduler.get_next_run_times() == {}

    @pytest.mark.asyncio
    async def test_notifications_scheduled(self, engine: StatusEngine, notifier: SummaryNotifier) -> None:
        """Test a valid cron expression schedules the summary job."""
        scheduler = MonitorScheduler(
            engine,
            notifier=notifier,
            notify_cron="0 9 * * *",
            cron_timezone="Europe/Paris",
        )
        await scheduler.start()
        try:
            assert scheduler.notifications_enabled
            assert set(scheduler.get_next_run_times()) == {ENGINE_JOB_ID, SUMMARY_JOB_ID}
        finally:
            await scheduler.stop()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "cron,tz",
        [
            ("not a cron", "UTC"),
            ("61 * * * *", "UTC"),
            ("0 9 * * *", "Mars/Olympus_Mons"),
        ],
    )
    async def test_invalid_cron_disables_notifications(
        self, engine: StatusEngine, notifier: SummaryNotifier, cron: str, tz: str
    ) -> None:
        """Test a bad pattern or timezone disables summaries but keeps the engine."""
        scheduler = MonitorScheduler(engine, notifier=notifier, notify_cron=cron, cron_timezone=tz)
        await scheduler.start()
        try:
            assert scheduler.is_running
            assert not scheduler.notifications_enabled
            assert set(scheduler.get_next_run_times()) == {ENGINE_JOB_ID}
        finally:
            await scheduler.stop()

    @pytest.mark.asyncio
    async def test_no_notifier(self, engine: StatusEngine) -> None:
        """Test summaries stay off without a notifier even with a schedule."""
        scheduler = MonitorScheduler(engine, notify_cron="0 9 * * *")
        await scheduler.start()
        try:
            assert not scheduler.notifications_enabled
        finally:
            await scheduler.stop()

    @pytest.mark.asyncio
    async def test_stop_and_restart(self, engine: StatusEngine) -> None:
        """Test the scheduler can be started again after a stop."""
        scheduler = MonitorScheduler(engine)
        await scheduler.start()
        await scheduler.start()  # Second start is a no-op
        await scheduler.stop()
        assert engine.is_stopping

        await scheduler.start()
        try:
            assert scheduler.is_running
            assert not engine.is_stopping
        finally:
            await scheduler.stop()

    @pytest.mark.asyncio
    async def test_stop_when_not_running(self, engine: StatusEngine) -> None:
        """Test stopping a scheduler that never started is harmless."""
        scheduler = MonitorScheduler(engine)
        await scheduler.stop()
        assert not scheduler.is_running
        assert not scheduler.notifications_enabled
