"""
Summary Notifications

Builds a status summary of all checks and hands it to a delivery channel
(webhook or console).
"""

from __future__ import annotations

from typing import Any, Protocol

import httpx
import structlog

from pulse.monitor.errors import DeliveryError
from pulse.monitor.models import CheckStatus, DownCheck, StatusSummary
from pulse.monitor.store import CheckStore

logger = structlog.get_logger(__name__)

WEBHOOK_FORMATS = ("json", "google_chat", "slack")


class SummaryDelivery(Protocol):
    """Something that can take a summary somewhere. Raises DeliveryError on failure."""

    async def deliver(self, summary: StatusSummary) -> None: ...


class WebhookDelivery:
    """
    Posts summaries to a webhook URL.

    Supports:
    - json: plain JSON document with counts and down checks
    - google_chat: Google Chat card message
    - slack: Slack incoming webhook blocks
    """

    def __init__(
        self,
        url: str,
        payload_format: str = "json",
        title: str = "Pulse",
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the webhook delivery.

        Args:
            url: Webhook URL
            payload_format: One of json, google_chat, slack
            title: Name shown in message headers
            timeout_seconds: HTTP timeout
            client: HTTP client to use (one is created lazily if None)
        """
        if payload_format not in WEBHOOK_FORMATS:
            raise ValueError(
                f"Unknown webhook format: {payload_format} (expected one of {', '.join(WEBHOOK_FORMATS)})"
            )
        self.url = url
        self.payload_format = payload_format
        self.title = title
        self._timeout = timeout_seconds
        self._http_client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def deliver(self, summary: StatusSummary) -> None:
        """Post the summary. Raises DeliveryError on transport or HTTP errors."""
        payload = self.build_payload(summary)
        client = await self._get_client()

        try:
            response = await client.post(self.url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise DeliveryError(f"Webhook failed with status: {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise DeliveryError(f"Webhook request failed: {e}") from e

    def build_payload(self, summary: StatusSummary) -> dict[str, Any]:
        if self.payload_format == "google_chat":
            return _google_chat_payload(summary, self.title)
        if self.payload_format == "slack":
            return _slack_payload(summary, self.title)
        return _json_payload(summary, self.title)


class ConsoleDelivery:
    """Prints summaries to the terminal."""

    def __init__(self, title: str = "Pulse") -> None:
        self.title = title

    async def deliver(self, summary: StatusSummary) -> None:
        from rich.console import Console
        from rich.panel import Panel
        from rich.text import Text

        console = Console()
        color = "green" if summary.all_up else "red"

        content = Text()
        content.append(f"{summary.headline()}\n\n", style="white")
        for status in CheckStatus:
            content.append(f"{status.value:<12}", style="dim")
            content.append(f"{summary.counts[status]}\n", style="cyan")

        if summary.down:
            content.append(f"\nDOWN checks ({len(summary.down)}):\n", style="dim")
            for check in summary.down:
                content.append(f"  • {check.name}", style=color)
                content.append(f"  last ping: {_last_ping_text(check)}\n", style="white")
        else:
            content.append("\nAll monitored services are UP.\n", style=color)

        console.print(Panel(
            content,
            title=f"[bold {color}]{self.title} Monitoring Summary[/bold {color}]",
            border_style=color,
        ))


class SummaryNotifier:
    """
    Sends a summary of all checks to a delivery channel.

    Purely observational: never writes to the store, never raises. The
    snapshot is read first and the store is not held while delivery waits
    on the network.
    """

    def __init__(self, store: CheckStore, delivery: SummaryDelivery) -> None:
        self.store = store
        self.delivery = delivery

    async def build_summary(self) -> StatusSummary:
        checks = await self.store.list_all()
        return StatusSummary.from_checks(checks)

    async def send_summary(self) -> bool:
        """
        Build and deliver one summary.

        Returns:
            True if delivered, False if building or delivery failed
        """
        try:
            summary = await self.build_summary()
        except Exception as e:
            logger.error("Failed to build status summary", error=str(e))
            return False

        try:
            await self.delivery.deliver(summary)
        except Exception as e:
            logger.error(
                "Failed to send summary",
                delivery=type(self.delivery).__name__,
                error=str(e),
            )
            return False

        logger.info("Summary sent", total=summary.total, down=len(summary.down))
        return True


def _last_ping_text(check: DownCheck) -> str:
    when = check.last_ping_datetime
    return when.strftime("%Y-%m-%d %H:%M:%S UTC") if when else "never"


def _json_payload(summary: StatusSummary, title: str) -> dict[str, Any]:
    return {
        "title": title,
        "total": summary.total,
        "counts": {status.value: count for status, count in summary.counts.items()},
        "down": [
            {
                "name": c.name,
                "token": c.token,
                "last_ping_at": c.last_ping_datetime.isoformat() if c.last_ping_datetime else None,
            }
            for c in summary.down
        ],
        "generated_at": summary.generated_at.isoformat(),
    }


def _google_chat_payload(summary: StatusSummary, title: str) -> dict[str, Any]:
    if summary.down:
        widgets = [
            {"textParagraph": {"text": f"<b>{_escape_html(c.name)}</b> - Last ping: {_last_ping_text(c)}"}}
            for c in summary.down
        ]
    else:
        widgets = [{"textParagraph": {"text": "All monitored services are UP."}}]

    return {
        "cardsV2": [{
            "cardId": "pulse-summary",
            "card": {
                "header": {
                    "title": f"{title} Monitoring Summary",
                    "subtitle": summary.headline(),
                },
                "sections": [{
                    "header": f"DOWN Checks ({len(summary.down)})",
                    "collapsible": True,
                    "uncollapsibleWidgetsCount": 1 if summary.down else 0,
                    "widgets": widgets,
                }],
            },
        }],
    }


def _slack_payload(summary: StatusSummary, title: str) -> dict[str, Any]:
    if summary.down:
        down_text = "\n".join(
            f"• *{c.name}* - last ping: {_last_ping_text(c)}"
            for c in summary.down
        )
    else:
        down_text = "All monitored services are UP."

    blocks = [
        {
            "type": "header",
            "text": {
                "type": "plain_text",
                "text": f"{title} Monitoring Summary",
            },
        },
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": summary.headline(),
            },
        },
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": f"*DOWN checks ({len(summary.down)}):*\n{down_text}",
            },
        },
    ]

    return {
        "blocks": blocks,
        "text": f"{title}: {summary.headline()}",  # Fallback
    }


def _escape_html(text: str) -> str:
    """Escape HTML special characters for chat cards."""
    return (
        text
        .replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
    )
