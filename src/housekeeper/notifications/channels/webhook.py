"""
Webhook notification channel.

Posts the run report as JSON to an HTTP endpoint.
"""

from typing import Any

import requests

from housekeeper.config import WebhookConfig
from housekeeper.notifications.channels.base import BaseChannel
from housekeeper.notifications.models import DeliveryResult, Notification


class WebhookChannel(BaseChannel):
    """Notification delivery via HTTP webhooks."""

    channel_type = "webhook"

    def __init__(self, config: WebhookConfig, session: requests.Session | None = None):
        """
        Initialize webhook channel.

        Args:
            config: Webhook configuration
            session: HTTP session (default: a new requests.Session)
        """
        self.webhook_config = config
        self._session = session or requests.Session()

    def is_enabled(self) -> bool:
        return self.webhook_config.enabled

    def validate_config(self) -> bool:
        """Validate webhook configuration."""
        return self.webhook_config.url.startswith(("http://", "https://"))

    def _prepare_payload(self, notification: Notification) -> dict[str, Any]:
        return {
            "id": notification.notification_id,
            "title": notification.title,
            "message": notification.message,
            "severity": notification.severity.value,
            "timestamp": notification.created_at,
            "report": notification.payload,
        }

    def deliver(self, notification: Notification) -> DeliveryResult:
        """
        Deliver notification via webhook.

        Args:
            notification: Notification to deliver

        Returns:
            DeliveryResult with delivery status
        """
        if not self.validate_config():
            return self._failure(notification, "Invalid webhook URL")

        headers = {"Content-Type": "application/json", **self.webhook_config.headers}
        try:
            response = self._session.post(
                self.webhook_config.url,
                json=self._prepare_payload(notification),
                headers=headers,
                timeout=self.webhook_config.timeout_seconds,
            )
        except requests.Timeout:
            return self._failure(notification, "Request timed out")
        except requests.RequestException as e:
            return self._failure(notification, f"Request failed: {e}")

        if response.status_code >= 400:
            return self._failure(
                notification,
                f"HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        self._log_delivery(notification, True)
        return DeliveryResult(
            success=True,
            channel=self.channel_type,
            notification_id=notification.notification_id,
            status_code=response.status_code,
        )

    def close(self) -> None:
        self._session.close()
