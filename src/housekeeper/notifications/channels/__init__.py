"""
Notification channel implementations for Housekeeper.

Provides report delivery by email and by webhook.
"""

from housekeeper.config import HousekeeperConfig
from housekeeper.core.exceptions import NotificationError
from housekeeper.notifications.channels.base import BaseChannel
from housekeeper.notifications.channels.email import EmailChannel
from housekeeper.notifications.channels.webhook import WebhookChannel

__all__ = [
    "BaseChannel",
    "EmailChannel",
    "WebhookChannel",
    "CHANNEL_REGISTRY",
    "get_channel",
    "channels_from_config",
]

# Channel type registry
CHANNEL_REGISTRY: dict[str, type[BaseChannel]] = {
    "email": EmailChannel,
    "webhook": WebhookChannel,
}


def get_channel(channel_type: str) -> type[BaseChannel] | None:
    """Get channel class by type identifier."""
    return CHANNEL_REGISTRY.get(channel_type.lower())


def channels_from_config(config: HousekeeperConfig) -> list[BaseChannel]:
    """
    Build the channels configured for a run, skipping absent sections.

    Raises:
        NotificationError: If an enabled channel is misconfigured
    """
    channels: list[BaseChannel] = []
    if config.mail is not None:
        channels.append(CHANNEL_REGISTRY["email"](config.mail))
    if config.webhook is not None:
        channels.append(CHANNEL_REGISTRY["webhook"](config.webhook))

    for channel in channels:
        if channel.is_enabled() and not channel.validate_config():
            raise NotificationError(
                f"Invalid {channel.channel_type} configuration",
                channel=channel.channel_type,
            )
    return channels
