"""
Tests for the Prometheus check metrics.
"""

from pulse.monitor import CheckMetrics, CheckStatus
from pulse.monitor.metrics import STATUS_VALUES, UNKNOWN_STATUS_VALUE

from tests.conftest import make_check

LABELS = {"name": "nightly-backup", "token": "token-1"}


def sample(metrics: CheckMetrics, name: str, labels: dict[str, str] = LABELS) -> float | None:
    return metrics.registry.get_sample_value(name, labels)


class TestCheckMetrics:
    """Tests for CheckMetrics."""

    def test_status_values(self) -> None:
        """Test the exported numeric encoding of each status."""
        assert STATUS_VALUES == {
            CheckStatus.DOWN: 0,
            CheckStatus.UP: 1,
            CheckStatus.NEW: 2,
            CheckStatus.MAINTENANCE: 3,
            CheckStatus.FAILED: 4,
        }

    def test_update_status_sets_gauges(self, metrics: CheckMetrics) -> None:
        """Test every gauge is set from the check."""
        check = make_check(
            status=CheckStatus.UP,
            last_ping_at=1_700_000_000,
            last_ping_duration_ms=1500,
            consecutive_down_count=0,
        )
        metrics.update_status(check)

        assert sample(metrics, "pulse_check_status") == 1
        assert sample(metrics, "pulse_check_last_ping_timestamp_seconds") == 1_700_000_000
        assert sample(metrics, "pulse_check_last_ping_duration_ms") == 1500
        assert sample(metrics, "pulse_check_consecutive_down_count") == 0

    def test_update_without_ping(self, metrics: CheckMetrics) -> None:
        """Test ping gauges stay unset for a check never pinged."""
        metrics.update_status(make_check())

        assert sample(metrics, "pulse_check_status") == 2
        assert sample(metrics, "pulse_check_last_ping_timestamp_seconds") is None
        assert sample(metrics, "pulse_check_last_ping_duration_ms") is None

    def test_ping_without_duration_clears_duration(self, metrics: CheckMetrics) -> None:
        """Test a later ping with no duration drops the previous duration value."""
        metrics.update_status(make_check(status=CheckStatus.UP, last_ping_at=100, last_ping_duration_ms=1500))
        metrics.update_status(make_check(status=CheckStatus.UP, last_ping_at=200))

        assert sample(metrics, "pulse_check_last_ping_duration_ms") is None
        assert sample(metrics, "pulse_check_last_ping_timestamp_seconds") == 200

    def test_unknown_status(self, metrics: CheckMetrics) -> None:
        """Test an unrecognized status is exported with the fallback value."""
        check = make_check().model_copy(update={"status": "sleeping"})
        metrics.update_status(check)
        assert sample(metrics, "pulse_check_status") == UNKNOWN_STATUS_VALUE

    def test_remove_status(self, metrics: CheckMetrics) -> None:
        """Test removal drops every series, including ones never set."""
        check = make_check(status=CheckStatus.UP, last_ping_at=1_700_000_000)
        metrics.update_status(check)

        metrics.remove_status(check)

        assert sample(metrics, "pulse_check_status") is None
        assert sample(metrics, "pulse_check_last_ping_timestamp_seconds") is None
        assert sample(metrics, "pulse_check_consecutive_down_count") is None

    def test_remove_unknown_is_harmless(self, metrics: CheckMetrics) -> None:
        """Test removing a check that was never exported does not raise."""
        metrics.remove_status(make_check(token="never-seen"))

    def test_hydrate(self, metrics: CheckMetrics) -> None:
        """Test hydrate exports every check and returns the count."""
        checks = [
            make_check(id=1, token="a", name="one", status=CheckStatus.DOWN, consecutive_down_count=2),
            make_check(id=2, token="b", name="two", status=CheckStatus.MAINTENANCE),
        ]
        assert metrics.hydrate(checks) == 2

        assert sample(metrics, "pulse_check_status", {"name": "one", "token": "a"}) == 0
        assert sample(metrics, "pulse_check_consecutive_down_count", {"name": "one", "token": "a"}) == 2
        assert sample(metrics, "pulse_check_status", {"name": "two", "token": "b"}) == 3

    def test_render(self, metrics: CheckMetrics) -> None:
        """Test the text exposition contains the check series."""
        metrics.update_status(make_check(status=CheckStatus.FAILED, last_ping_at=5))
        body = metrics.render().decode("utf-8")

        assert 'pulse_check_status{name="nightly-backup",token="token-1"} 4.0' in body
        assert metrics.content_type.startswith("text/plain")

    def test_process_metrics_optional(self) -> None:
        """Test process collectors are only registered when asked for."""
        with_process = CheckMetrics(include_process_metrics=True).render().decode("utf-8")
        without = CheckMetrics(include_process_metrics=False).render().decode("utf-8")

        assert "python_info" in with_process
        assert "python_info" not in without
