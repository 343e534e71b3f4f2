"""Routes reminder notifications to the configured channel (log/Telegram/webhook)."""

import logging
from typing import Optional

import httpx

from .models import (
    NotificationChannel,
    NotificationKind,
    ReminderNotification,
    ms_to_iso,
)
from .telegram_bot import TelegramBot

logger = logging.getLogger(__name__)

# Presentation per notification kind: (emoji, title, footer, embed colour)
_STYLES = {
    NotificationKind.SET: ("⏰", "⏰ Reminder Set ⏰", "Reminder will trigger", 0x5865F2),
    NotificationKind.TRIGGER: ("\U0001f514", "\U0001f514 Reminder \U0001f514", "Reminder triggered", 0xED4245),
}


class NotifierUnavailable(Exception):
    """The selected channel is not configured or cannot deliver right now."""


class WebhookClient:
    """Posts Discord-style embed payloads to a webhook URL."""

    def __init__(self, url: str, username: Optional[str] = None, timeout: float = 5.0):
        self.url = url
        self.username = username
        self.timeout = timeout

    def build_payload(self, notification: ReminderNotification) -> dict:
        emoji, title, footer, color = _STYLES[notification.kind]
        return {
            "content": "",
            "username": self.username or f"{emoji} Reminder {emoji}",
            "avatar_url": "",
            "embeds": [
                {
                    "title": title,
                    "description": notification.message,
                    "color": color,
                    "footer": {"text": footer},
                    "timestamp": ms_to_iso(notification.due_at),
                }
            ],
        }

    async def send(self, notification: ReminderNotification) -> bool:
        """
        Post a notification.

        Returns:
            True if the webhook answered with a 2xx status
        """
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.url,
                    json=self.build_payload(notification),
                    timeout=self.timeout,
                )
        except httpx.HTTPError as e:
            logger.error(f"Webhook request failed: {e}")
            return False

        if response.is_success:
            return True
        logger.error(f"Webhook returned HTTP {response.status_code}: {response.text[:200]}")
        return False


class Notifier:
    """
    Delivers reminder notifications to the user-facing channel.

    ``notify`` never raises for channel problems: an unconfigured or
    failing channel is reported as False so the caller can retry later.
    """

    def __init__(
        self,
        telegram_bot: Optional[TelegramBot] = None,
        webhook: Optional[WebhookClient] = None,
        default_channel: NotificationChannel = NotificationChannel.LOG,
    ):
        self.telegram = telegram_bot
        self.webhook = webhook
        self.default_channel = default_channel

    async def notify(self, notification: ReminderNotification) -> bool:
        """
        Send a notification.

        Args:
            notification: The reminder notification

        Returns:
            True if notification sent successfully
        """
        channel = notification.channel or self.default_channel

        try:
            if channel == NotificationChannel.LOG:
                return self._notify_log(notification)
            if channel == NotificationChannel.TELEGRAM:
                return await self._notify_telegram(notification)
            if channel == NotificationChannel.WEBHOOK:
                return await self._notify_webhook(notification)
        except NotifierUnavailable as e:
            logger.warning(f"Notification channel {channel.value} unavailable: {e}")
            return False

        logger.error(f"Unsupported notification channel: {channel}")
        return False

    def _notify_log(self, notification: ReminderNotification) -> bool:
        """Write the notification to the application log."""
        logger.info(self.format_message(notification).replace("\n", " | "))
        return True

    async def _notify_telegram(self, notification: ReminderNotification) -> bool:
        """Send notification via Telegram."""
        if not self.telegram:
            raise NotifierUnavailable("Telegram not configured")
        if not self.telegram.bot:
            raise NotifierUnavailable("Telegram bot not started")

        msg_id = await self.telegram.send_notification(self.format_message(notification))
        return msg_id is not None

    async def _notify_webhook(self, notification: ReminderNotification) -> bool:
        """Send notification via webhook."""
        if not self.webhook:
            raise NotifierUnavailable("Webhook not configured")

        return await self.webhook.send(notification)

    @staticmethod
    def format_message(notification: ReminderNotification) -> str:
        """Format a notification as plain text."""
        _, title, footer, _ = _STYLES[notification.kind]
        return "\n".join([
            title,
            notification.message,
            "",
            f"{footer}: {ms_to_iso(notification.due_at)}",
        ])


def create_notifier(config: Optional[dict] = None, telegram_bot: Optional[TelegramBot] = None) -> Notifier:
    """
    Build a Notifier from the ``notifier`` and ``webhook`` config sections.

    Args:
        config: Full application config dict
        telegram_bot: Optional started-or-startable TelegramBot

    Returns:
        Configured Notifier
    """
    config = config or {}
    notifier_config = config.get("notifier", {})
    webhook_config = config.get("webhook", {})

    webhook = None
    if webhook_config.get("url"):
        webhook = WebhookClient(
            url=webhook_config["url"],
            username=webhook_config.get("username"),
            timeout=webhook_config.get("timeout_seconds", 5.0),
        )

    channel_name = notifier_config.get("default_channel", "log")
    try:
        default_channel = NotificationChannel(channel_name)
    except ValueError:
        logger.warning(f"Unknown notification channel '{channel_name}', falling back to log")
        default_channel = NotificationChannel.LOG

    return Notifier(
        telegram_bot=telegram_bot,
        webhook=webhook,
        default_channel=default_channel,
    )
