"""
Base channel class for notification delivery.

All notification channels must inherit from BaseChannel and implement
the deliver() method.
"""

import logging
from abc import ABC, abstractmethod

from housekeeper.notifications.models import DeliveryResult, Notification

logger = logging.getLogger(__name__)


class BaseChannel(ABC):
    """
    Abstract base class for notification channels.

    All channels must implement:
    - deliver(): Send the notification
    - validate_config(): Check configuration validity
    """

    channel_type: str = "base"

    @abstractmethod
    def validate_config(self) -> bool:
        """
        Validate channel configuration.

        Returns:
            True if configuration is valid
        """

    @abstractmethod
    def deliver(self, notification: Notification) -> DeliveryResult:
        """
        Deliver a notification through this channel.

        Args:
            notification: Notification to deliver

        Returns:
            DeliveryResult with delivery status
        """

    def is_enabled(self) -> bool:
        """Check if channel is enabled."""
        return True

    def close(self) -> None:
        """Release channel resources."""

    def _failure(
        self,
        notification: Notification,
        error: str,
        status_code: int | None = None,
    ) -> DeliveryResult:
        """Log a failed delivery and build its result."""
        self._log_delivery(notification, False, error)
        return DeliveryResult(
            success=False,
            channel=self.channel_type,
            notification_id=notification.notification_id,
            error_message=error,
            status_code=status_code,
        )

    def _log_delivery(
        self,
        notification: Notification,
        success: bool,
        error: str | None = None,
    ) -> None:
        """
        Log delivery attempt for debugging/auditing.

        Args:
            notification: Notification that was delivered
            success: Whether delivery succeeded
            error: Error message if failed
        """
        if success:
            logger.info(f"Notification {notification.notification_id} delivered via {self.channel_type}")
        else:
            logger.error(
                f"Notification {notification.notification_id} failed via {self.channel_type}: {error}"
            )
