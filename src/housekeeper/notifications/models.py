"""
Notification data models for Housekeeper.

Defines the notification handed to delivery channels and the result of a
delivery attempt.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class NotificationSeverity(Enum):
    """Severity levels for notifications."""

    WARNING = "warning"
    INFO = "info"


@dataclass
class DeliveryResult:
    """Result of a notification delivery attempt."""

    success: bool
    channel: str
    notification_id: str
    error_message: str | None = None
    status_code: int | None = None
    delivered_at: str = field(default_factory=lambda: _iso_timestamp())


class NotificationTemplate(BaseModel):
    """Template for notification messages."""

    name: str = Field(description="Template identifier")
    title_template: str = Field(description="Title template with {{vars}}")
    body_template: str = Field(description="Body template with {{vars}}")
    required_vars: list[str] = Field(default_factory=list, description="Variables that must be provided")

    def render(self, variables: dict[str, Any]) -> tuple[str, str]:
        """
        Render the template with provided variables.

        Returns:
            Tuple of (rendered_title, rendered_body)
        """
        missing = [v for v in self.required_vars if v not in variables]
        if missing:
            raise ValueError(f"Missing required template variables: {missing}")

        return (
            self._render_template(self.title_template, variables),
            self._render_template(self.body_template, variables),
        )

    @staticmethod
    def _render_template(template: str, variables: dict[str, Any]) -> str:
        """Replace {{var}} placeholders with values."""
        result = template
        for key, value in variables.items():
            placeholder = f"{{{{{key}}}}}"
            result = result.replace(placeholder, str(value))
        return result


class Notification(BaseModel):
    """A notification to be delivered."""

    notification_id: str = Field(
        default_factory=lambda: f"notif-{uuid.uuid4().hex[:16]}",
        description="Unique notification identifier",
    )
    title: str = Field(description="Notification title (mail subject)")
    message: str = Field(description="Notification body/message")
    severity: NotificationSeverity = Field(default=NotificationSeverity.INFO)
    payload: dict[str, Any] = Field(
        default_factory=dict, description="Structured report the message was built from"
    )
    created_at: str = Field(default_factory=lambda: _iso_timestamp())


def _iso_timestamp() -> str:
    """Return current ISO8601 timestamp in UTC."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
