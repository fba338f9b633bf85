"""
Tests for summary notifications.
"""

import json

import httpx
import pytest

from pulse.monitor import (
    CheckService,
    CheckStatus,
    CheckStore,
    ConsoleDelivery,
    DeliveryError,
    StatusSummary,
    SummaryNotifier,
    WebhookDelivery,
)

from tests.conftest import make_check

WEBHOOK_URL = "https://hooks.example.com/pulse"


def summary_with_down() -> StatusSummary:
    return StatusSummary.from_checks([
        make_check(id=1, token="a", name="db <backup>", status=CheckStatus.DOWN, last_ping_at=1_700_000_000),
        make_check(id=2, token="b", name="worker", status=CheckStatus.UP, last_ping_at=1_700_000_000),
        make_check(id=3, token="c", name="report", status=CheckStatus.DOWN),
    ])


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class RecordingDelivery:
    """Delivery that keeps what it was given."""

    def __init__(self) -> None:
        self.summaries: list[StatusSummary] = []

    async def deliver(self, summary: StatusSummary) -> None:
        self.summaries.append(summary)


class FailingDelivery:
    async def deliver(self, summary: StatusSummary) -> None:
        raise DeliveryError("remote end refused")


class TestPayloads:
    """Tests for webhook payload formats."""

    def test_unknown_format(self) -> None:
        """Test an unsupported format is rejected up front."""
        with pytest.raises(ValueError):
            WebhookDelivery(WEBHOOK_URL, payload_format="teams")

    def test_json_payload(self) -> None:
        """Test the plain JSON document."""
        payload = WebhookDelivery(WEBHOOK_URL, "json", title="Pulse").build_payload(summary_with_down())

        assert payload["title"] == "Pulse"
        assert payload["total"] == 3
        assert payload["counts"]["down"] == 2
        assert payload["counts"]["maintenance"] == 0
        assert [d["name"] for d in payload["down"]] == ["db <backup>", "report"]
        assert payload["down"][0]["last_ping_at"].startswith("2023-11-14T22:13:20")
        assert payload["down"][1]["last_ping_at"] is None

    def test_google_chat_payload(self) -> None:
        """Test the chat card lists down checks with escaped names."""
        payload = WebhookDelivery(WEBHOOK_URL, "google_chat").build_payload(summary_with_down())

        card = payload["cardsV2"][0]["card"]
        assert card["header"]["subtitle"] == "3 checks: 2 DOWN, 1 UP, 0 MAINT"
        section = card["sections"][0]
        assert section["header"] == "DOWN Checks (2)"
        assert section["uncollapsibleWidgetsCount"] == 1
        texts = [w["textParagraph"]["text"] for w in section["widgets"]]
        assert texts[0] == "<b>db &lt;backup&gt;</b> - Last ping: 2023-11-14 22:13:20 UTC"
        assert texts[1].endswith("Last ping: never")

    def test_google_chat_all_up(self) -> None:
        """Test the card says so when nothing is down."""
        summary = StatusSummary.from_checks([make_check(status=CheckStatus.UP, last_ping_at=1)])
        payload = WebhookDelivery(WEBHOOK_URL, "google_chat").build_payload(summary)

        section = payload["cardsV2"][0]["card"]["sections"][0]
        assert section["widgets"] == [{"textParagraph": {"text": "All monitored services are UP."}}]
        assert section["uncollapsibleWidgetsCount"] == 0

    def test_slack_payload(self) -> None:
        """Test the Slack blocks carry the headline and fallback text."""
        payload = WebhookDelivery(WEBHOOK_URL, "slack", title="Ops").build_payload(summary_with_down())

        assert payload["text"] == "Ops: 3 checks: 2 DOWN, 1 UP, 0 MAINT"
        assert payload["blocks"][0]["text"]["text"] == "Ops Monitoring Summary"
        assert "*report*" in payload["blocks"][2]["text"]["text"]


class TestWebhookDelivery:
    """Tests for posting to the webhook."""

    @pytest.mark.asyncio
    async def test_posts_payload(self) -> None:
        """Test the payload is posted as JSON to the URL."""
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200)

        delivery = WebhookDelivery(WEBHOOK_URL, "json", client=mock_client(handler))
        await delivery.deliver(summary_with_down())
        await delivery.close()

        assert len(requests) == 1
        assert str(requests[0].url) == WEBHOOK_URL
        assert requests[0].method == "POST"
        assert json.loads(requests[0].content)["total"] == 3

    @pytest.mark.asyncio
    async def test_http_error_status(self) -> None:
        """Test a non-2xx response raises DeliveryError."""
        delivery = WebhookDelivery(
            WEBHOOK_URL, client=mock_client(lambda request: httpx.Response(500))
        )
        with pytest.raises(DeliveryError, match="500"):
            await delivery.deliver(summary_with_down())

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        """Test a connection failure raises DeliveryError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        delivery = WebhookDelivery(WEBHOOK_URL, client=mock_client(handler))
        with pytest.raises(DeliveryError):
            await delivery.deliver(summary_with_down())


class TestSummaryNotifier:
    """Tests for SummaryNotifier."""

    @pytest.mark.asyncio
    async def test_summary_reflects_store(self, service: CheckService, store: CheckStore) -> None:
        """Test the summary is built from the current checks."""
        up = await service.create("up", "1d", "1h")
        await service.record_ping(up.token)
        await service.create("new", "1d", "1h")
        paused = await service.create("paused", "1d", "1h")
        await service.toggle_maintenance(paused.token)

        delivery = RecordingDelivery()
        sent = await SummaryNotifier(store, delivery).send_summary()

        assert sent is True
        summary = delivery.summaries[0]
        assert summary.total == 3
        assert summary.counts[CheckStatus.UP] == 1
        assert summary.counts[CheckStatus.NEW] == 1
        assert summary.counts[CheckStatus.MAINTENANCE] == 1
        assert summary.down == []

    @pytest.mark.asyncio
    async def test_delivery_failure_is_not_raised(self, service: CheckService, store: CheckStore) -> None:
        """Test a failed delivery returns False and leaves checks alone."""
        check = await service.create("backup", "1d", "1h")

        sent = await SummaryNotifier(store, FailingDelivery()).send_summary()

        assert sent is False
        assert await store.get_by_token(check.token) == check

    @pytest.mark.asyncio
    async def test_webhook_failure_is_not_raised(self, store: CheckStore) -> None:
        """Test an HTTP error from the webhook is swallowed by the notifier."""
        delivery = WebhookDelivery(WEBHOOK_URL, client=mock_client(lambda request: httpx.Response(503)))
        assert await SummaryNotifier(store, delivery).send_summary() is False

    @pytest.mark.asyncio
    async def test_store_failure_is_not_raised(self, store: CheckStore) -> None:
        """Test an unreadable store returns False without delivering."""
        delivery = RecordingDelivery()
        store.close()

        assert await SummaryNotifier(store, delivery).send_summary() is False
        assert delivery.summaries == []


class TestConsoleDelivery:
    """Tests for ConsoleDelivery."""

    @pytest.mark.asyncio
    async def test_prints_summary(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test the panel lists the down checks."""
        await ConsoleDelivery(title="Pulse").deliver(summary_with_down())

        out = capsys.readouterr().out
        assert "Pulse Monitoring Summary" in out
        assert "db <backup>" in out
        assert "3 checks: 2 DOWN, 1 UP, 0 MAINT" in out
