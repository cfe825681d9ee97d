"""
Notification dispatcher for Housekeeper.

Delivers a notification to every enabled channel in turn. A failing
channel never stops delivery to the others and never aborts the run.
"""

import logging

from housekeeper.notifications.channels.base import BaseChannel
from housekeeper.notifications.models import DeliveryResult, Notification

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Synchronous fan-out of notifications to configured channels."""

    def __init__(self, channels: list[BaseChannel] | None = None):
        self._channels: list[BaseChannel] = list(channels or [])

    @property
    def channels(self) -> list[BaseChannel]:
        return list(self._channels)

    def add_channel(self, channel: BaseChannel) -> None:
        self._channels.append(channel)

    def send_notification(self, notification: Notification) -> list[DeliveryResult]:
        """
        Deliver a notification to all enabled channels.

        Args:
            notification: Notification to deliver

        Returns:
            One DeliveryResult per enabled channel
        """
        results: list[DeliveryResult] = []
        for channel in self._channels:
            if not channel.is_enabled():
                logger.debug(f"Channel {channel.channel_type} disabled, skipped")
                continue

            try:
                result = channel.deliver(notification)
            except Exception as e:
                logger.error(f"Delivery error for {channel.channel_type}: {e}")
                result = DeliveryResult(
                    success=False,
                    channel=channel.channel_type,
                    notification_id=notification.notification_id,
                    error_message=str(e),
                )
            results.append(result)

        return results

    def close(self) -> None:
        for channel in self._channels:
            channel.close()
