"""Health issue delivery — Slack and Telegram webhooks.

Anything with a ``deliver(event)`` method can receive HealthIssueEvents from
the HealthService. Delivery failures are logged, never raised; retrying is up
to the channel.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Protocol

import httpx

from healthwatch.health.models import HealthIssueEvent, Status

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def deliver(self, event: HealthIssueEvent) -> None: ...


class NotifyLevel(str, Enum):
    WARNING = "warning"
    CRITICAL = "critical"
    RECOVERY = "recovery"
    INFO = "info"


_EMOJI = {
    NotifyLevel.INFO: "ℹ️",
    NotifyLevel.WARNING: "⚠️",
    NotifyLevel.CRITICAL: "🔴",
    NotifyLevel.RECOVERY: "✅",
}


def level_for(event: HealthIssueEvent) -> NotifyLevel:
    if event.new_status == Status.ERROR:
        return NotifyLevel.CRITICAL
    if event.new_status == Status.WARNING:
        return NotifyLevel.WARNING
    if event.new_status == Status.HEALTHY:
        return NotifyLevel.RECOVERY
    return NotifyLevel.INFO


def format_event(event: HealthIssueEvent) -> str:
    level = level_for(event)
    text = (
        f"{_EMOJI[level]} *Health Alert*\n"
        f"Resource: `{event.resource_name}`\n"
        f"Status: {event.previous_status.value} → *{event.new_status.value}*\n"
    )
    if event.message:
        text += f"Detail: {event.message}\n"
    return text


class LogNotifier:
    """Writes events to the log. Used when no webhook is configured."""

    def deliver(self, event: HealthIssueEvent) -> None:
        log = logger.info if event.is_recovery else logger.warning
        log(
            "[%s] %s: %s -> %s %s",
            level_for(event).value, event.resource_name,
            event.previous_status.value, event.new_status.value, event.message,
        )


class NotificationManager:
    """Dispatches events to every configured channel."""

    def __init__(
        self,
        slack_webhook: str = "",
        telegram_token: str = "",
        telegram_chat_id: str = "",
        timeout: float = 10,
    ) -> None:
        self.slack_webhook = slack_webhook
        self.telegram_token = telegram_token
        self.telegram_chat_id = telegram_chat_id
        self.timeout = timeout

    @property
    def is_enabled(self) -> bool:
        return bool(self.slack_webhook or (self.telegram_token and self.telegram_chat_id))

    def status(self) -> dict[str, Any]:
        return {
            "enabled": self.is_enabled,
            "slack_configured": bool(self.slack_webhook),
            "telegram_configured": bool(self.telegram_token and self.telegram_chat_id),
        }

    def deliver(self, event: HealthIssueEvent) -> None:
        if not self.is_enabled:
            return
        text = format_event(event)
        with httpx.Client(timeout=self.timeout) as client:
            if self.slack_webhook:
                self._send_slack(client, text)
            if self.telegram_token and self.telegram_chat_id:
                self._send_telegram(client, text)

    def _send_slack(self, client: httpx.Client, text: str) -> None:
        """POST to Slack incoming webhook."""
        try:
            resp = client.post(self.slack_webhook, json={"text": text, "mrkdwn": True})
            if resp.status_code != 200:
                logger.warning("Slack webhook returned %d: %s", resp.status_code, resp.text[:200])
        except httpx.HTTPError as exc:
            logger.warning("Slack notification failed: %s", exc)

    def _send_telegram(self, client: httpx.Client, text: str) -> None:
        """POST to Telegram Bot API."""
        url = f"https://api.telegram.org/bot{self.telegram_token}/sendMessage"
        try:
            resp = client.post(
                url,
                json={"chat_id": self.telegram_chat_id, "text": text, "parse_mode": "Markdown"},
            )
            if resp.status_code != 200:
                logger.warning("Telegram API returned %d: %s", resp.status_code, resp.text[:200])
        except httpx.HTTPError as exc:
            logger.warning("Telegram notification failed: %s", exc)


def build_notifier(settings: Any) -> Notifier:
    """Pick the delivery channel from settings."""
    manager = NotificationManager(
        slack_webhook=settings.slack_webhook_url,
        telegram_token=settings.telegram_bot_token,
        telegram_chat_id=settings.telegram_chat_id,
    )
    if manager.is_enabled:
        return manager
    return LogNotifier()
