"""
Notification templates for Housekeeper.

Turns a run report into the notification sent after every completed run.
The subject carries a ``[WARNING]`` prefix and the body a banner when a
usage threshold was exceeded.
"""

from housekeeper.notifications.models import (
    Notification,
    NotificationSeverity,
    NotificationTemplate,
)
from housekeeper.reporting.report import RunReport

THRESHOLD_BANNER = "!!!! EXCEEDING THRESHOLD !!!!"

WARNING_PREFIX = "[WARNING] "

RUN_REPORT = NotificationTemplate(
    name="run_report",
    title_template="{{prefix}}Housekeeper - {{host}}",
    body_template="""Housekeeper - Generational retention for dated artifacts
{{banner}}
Volume: {{volume}}
Deleted Artifacts: {{deleted}}
Volume Usage: {{volume_usage}}%
Shadow Usage: {{shadow_usage}}%

{{report_yaml}}""",
    required_vars=["host", "volume", "deleted", "volume_usage", "shadow_usage"],
)


def format_percent(fraction: float) -> str:
    """Format a fraction as a percentage with one decimal."""
    return f"{fraction * 100:.1f}"


def report_notification(report: RunReport) -> Notification:
    """Build the notification for a run report."""
    variables = {
        "prefix": WARNING_PREFIX if report.exceeded else "",
        "banner": f"{THRESHOLD_BANNER}\n" if report.exceeded else "",
        "host": report.host,
        "volume": report.volume,
        "deleted": report.deleted,
        "volume_usage": format_percent(report.usage.volume),
        "shadow_usage": format_percent(report.usage.shadow),
        "report_yaml": report.to_yaml(),
    }
    title, body = RUN_REPORT.render(variables)

    return Notification(
        title=title,
        message=body,
        severity=NotificationSeverity.WARNING if report.exceeded else NotificationSeverity.INFO,
        payload=report.model_dump(mode="json"),
    )
