"""
Housekeeper Notifications Module.

Turns run reports into notifications and delivers them.

Usage:
    from housekeeper.notifications import (
        NotificationDispatcher,
        channels_from_config,
        report_notification,
    )

    dispatcher = NotificationDispatcher(channels_from_config(config))
    dispatcher.send_notification(report_notification(report))
"""

from housekeeper.notifications.channels import (
    CHANNEL_REGISTRY,
    BaseChannel,
    EmailChannel,
    WebhookChannel,
    channels_from_config,
    get_channel,
)
from housekeeper.notifications.dispatcher import NotificationDispatcher
from housekeeper.notifications.models import (
    DeliveryResult,
    Notification,
    NotificationSeverity,
    NotificationTemplate,
)
from housekeeper.notifications.templates import (
    RUN_REPORT,
    THRESHOLD_BANNER,
    WARNING_PREFIX,
    format_percent,
    report_notification,
)

__all__ = [
    # Models
    "DeliveryResult",
    "Notification",
    "NotificationSeverity",
    "NotificationTemplate",
    # Channels
    "BaseChannel",
    "EmailChannel",
    "WebhookChannel",
    "CHANNEL_REGISTRY",
    "get_channel",
    "channels_from_config",
    # Dispatch
    "NotificationDispatcher",
    # Templates
    "RUN_REPORT",
    "THRESHOLD_BANNER",
    "WARNING_PREFIX",
    "format_percent",
    "report_notification",
]
