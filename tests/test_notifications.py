"""Tests for notifications module (templates, channels, dispatcher)."""

import smtplib
from datetime import datetime, timezone
from unittest.mock import MagicMock, Mock

import pytest
import requests

from housekeeper.config import HousekeeperConfig, MailConfig, WebhookConfig
from housekeeper.core.exceptions import NotificationError
from housekeeper.notifications import (
    CHANNEL_REGISTRY,
    BaseChannel,
    DeliveryResult,
    EmailChannel,
    Notification,
    NotificationDispatcher,
    NotificationSeverity,
    NotificationTemplate,
    THRESHOLD_BANNER,
    WebhookChannel,
    channels_from_config,
    format_percent,
    get_channel,
    report_notification,
)
from housekeeper.reporting import build_report
from housekeeper.retention import RetentionPolicy, Thresholds, classify, evaluate


def _report(usage_snapshot, exceeded: bool):
    thresholds = Thresholds(volume=0.7 if exceeded else 0.9)
    return build_report(
        datetime(2024, 3, 2, 4, 0, tzinfo=timezone.utc),
        "C:",
        evaluate(usage_snapshot, thresholds),
        classify([], RetentionPolicy.from_quotas({"daily": 3})),
        deleted_count=4,
        host="files01",
    )


@pytest.fixture
def mail_config() -> MailConfig:
    return MailConfig(
        from_address="housekeeper@example.com",
        to=["ops@example.com"],
        smtp={"server": "smtp.example.com", "port": 587, "use_tls": True, "username": "hk", "password": "pw"},
    )


@pytest.fixture
def notification() -> Notification:
    return Notification(title="Housekeeper - files01", message="body")


# =============================================================================
# Model and template tests
# =============================================================================


class TestNotificationTemplate:
    """Tests for NotificationTemplate rendering."""

    def test_render(self):
        """Test placeholders are replaced in title and body."""
        template = NotificationTemplate(
            name="t",
            title_template="Run on {{host}}",
            body_template="Deleted: {{deleted}}",
            required_vars=["host"],
        )
        assert template.render({"host": "files01", "deleted": 3}) == ("Run on files01", "Deleted: 3")

    def test_missing_required_vars(self):
        """Test missing required variables raise ValueError."""
        template = NotificationTemplate(name="t", title_template="{{a}}", body_template="", required_vars=["a"])
        with pytest.raises(ValueError) as exc_info:
            template.render({})
        assert "Missing required template variables" in str(exc_info.value)


class TestReportNotification:
    """Tests for turning run reports into notifications."""

    def test_exceeded_report(self, usage_snapshot):
        """Test an exceeded report gets the warning prefix and banner."""
        notification = report_notification(_report(usage_snapshot, exceeded=True))

        assert notification.title == "[WARNING] Housekeeper - files01"
        assert THRESHOLD_BANNER in notification.message
        assert notification.severity == NotificationSeverity.WARNING

    def test_normal_report(self, usage_snapshot):
        """Test a report within thresholds has a plain subject and no banner."""
        notification = report_notification(_report(usage_snapshot, exceeded=False))

        assert notification.title == "Housekeeper - files01"
        assert THRESHOLD_BANNER not in notification.message
        assert notification.severity == NotificationSeverity.INFO

    def test_body_contents(self, usage_snapshot):
        """Test the body shows counts, one-decimal percentages and the YAML report."""
        notification = report_notification(_report(usage_snapshot, exceeded=False))

        assert "Volume: C:" in notification.message
        assert "Deleted Artifacts: 4" in notification.message
        assert "Volume Usage: 75.0%" in notification.message
        assert "Shadow Usage: 20.0%" in notification.message
        assert "host: files01" in notification.message
        assert notification.payload["deleted"] == 4

    @pytest.mark.parametrize("fraction,expected", [(0.0, "0.0"), (0.12345, "12.3"), (1.0, "100.0")])
    def test_format_percent(self, fraction, expected):
        """Test percentages keep one decimal."""
        assert format_percent(fraction) == expected


# =============================================================================
# Channel tests
# =============================================================================


class TestEmailChannel:
    """Tests for EmailChannel."""

    def test_deliver(self, mail_config, notification):
        """Test a notification is sent through SMTP with TLS and login."""
        smtp_factory = MagicMock()
        connection = smtp_factory.return_value.__enter__.return_value

        result = EmailChannel(mail_config, smtp_factory=smtp_factory).deliver(notification)

        assert result.success is True
        smtp_factory.assert_called_once_with("smtp.example.com", 587, timeout=30)
        connection.starttls.assert_called_once()
        connection.login.assert_called_once_with("hk", "pw")
        message = connection.send_message.call_args.args[0]
        assert message["Subject"] == "Housekeeper - files01"
        assert message["To"] == "ops@example.com"
        assert message["X-Notification-Severity"] == "info"
        assert message.get_content().strip() == "body"

    def test_no_tls_no_login(self, notification):
        """Test plain SMTP skips STARTTLS and login when not configured."""
        config = MailConfig(from_address="hk@example.com", to=["ops@example.com"])
        smtp_factory = MagicMock()
        connection = smtp_factory.return_value.__enter__.return_value

        EmailChannel(config, smtp_factory=smtp_factory).deliver(notification)

        smtp_factory.assert_called_once_with("localhost", 25, timeout=30)
        connection.starttls.assert_not_called()
        connection.login.assert_not_called()

    def test_authentication_failure(self, mail_config, notification):
        """Test authentication errors are reported."""
        smtp_factory = MagicMock()
        connection = smtp_factory.return_value.__enter__.return_value
        connection.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")

        result = EmailChannel(mail_config, smtp_factory=smtp_factory).deliver(notification)

        assert result.success is False
        assert "authentication" in result.error_message

    def test_connection_failure(self, mail_config, notification, caplog):
        """Test connection errors are reported and logged."""
        smtp_factory = MagicMock(side_effect=ConnectionRefusedError("refused"))

        result = EmailChannel(mail_config, smtp_factory=smtp_factory).deliver(notification)

        assert result.success is False
        assert "Connection error" in result.error_message
        assert "failed via email" in caplog.text

    def test_invalid_config(self, notification):
        """Test an invalid sender is refused without connecting."""
        config = MailConfig(from_address="nobody", to=["ops@example.com"])
        smtp_factory = MagicMock()

        result = EmailChannel(config, smtp_factory=smtp_factory).deliver(notification)

        assert result.success is False
        smtp_factory.assert_not_called()


class TestWebhookChannel:
    """Tests for WebhookChannel."""

    def test_deliver(self, notification):
        """Test the notification is posted as JSON with configured headers."""
        session = Mock()
        session.post.return_value = Mock(status_code=204, text="")
        config = WebhookConfig(url="https://hooks.example.com/hk", headers={"X-Token": "t"})

        result = WebhookChannel(config, session=session).deliver(notification)

        assert result.success is True
        assert result.status_code == 204
        kwargs = session.post.call_args.kwargs
        assert session.post.call_args.args[0] == "https://hooks.example.com/hk"
        assert kwargs["json"]["title"] == "Housekeeper - files01"
        assert kwargs["headers"]["X-Token"] == "t"
        assert kwargs["timeout"] == 30

    def test_server_error(self, notification):
        """Test 5xx responses are failed results."""
        session = Mock()
        session.post.return_value = Mock(status_code=503, text="unavailable")

        result = WebhookChannel(WebhookConfig(url="http://hooks.local"), session=session).deliver(notification)

        assert result.success is False
        assert result.status_code == 503
        assert "HTTP 503" in result.error_message

    def test_client_error(self, notification):
        """Test 4xx responses are failed results."""
        session = Mock()
        session.post.return_value = Mock(status_code=404, text="not found")

        result = WebhookChannel(WebhookConfig(url="http://hooks.local"), session=session).deliver(notification)

        assert result.success is False
        assert result.status_code == 404

    def test_request_exception(self, notification):
        """Test network errors become failed results."""
        session = Mock()
        session.post.side_effect = requests.ConnectionError("down")

        result = WebhookChannel(WebhookConfig(url="http://hooks.local"), session=session).deliver(notification)

        assert result.success is False
        assert "Request failed" in result.error_message

    def test_timeout(self, notification):
        """Test a timeout is reported as such."""
        session = Mock()
        session.post.side_effect = requests.Timeout()

        result = WebhookChannel(WebhookConfig(url="http://hooks.local"), session=session).deliver(notification)

        assert result.error_message == "Request timed out"

    def test_invalid_url(self, notification):
        """Test non-HTTP URLs are refused."""
        session = Mock()
        result = WebhookChannel(WebhookConfig(url="ftp://hooks.local"), session=session).deliver(notification)
        assert result.success is False
        session.post.assert_not_called()


class TestChannelRegistry:
    """Tests for channel lookup and construction from configuration."""

    def test_get_channel(self):
        """Test channel classes are looked up case-insensitively."""
        assert get_channel("EMAIL") is EmailChannel
        assert get_channel("webhook") is WebhookChannel
        assert get_channel("pager") is None
        assert set(CHANNEL_REGISTRY) == {"email", "webhook"}

    def test_channels_from_config(self, mail_config):
        """Test configured sections become channels."""
        config = HousekeeperConfig(mail=mail_config, webhook=WebhookConfig(url="https://hooks.example.com"))
        channels = channels_from_config(config)
        assert [c.channel_type for c in channels] == ["email", "webhook"]

    def test_no_channels(self):
        """Test no sections means no channels."""
        assert channels_from_config(HousekeeperConfig()) == []

    def test_invalid_enabled_channel(self):
        """Test a misconfigured enabled channel raises NotificationError."""
        config = HousekeeperConfig(webhook=WebhookConfig(url="hooks.example.com"))
        with pytest.raises(NotificationError) as exc_info:
            channels_from_config(config)
        assert exc_info.value.channel == "webhook"

    def test_invalid_disabled_channel_allowed(self):
        """Test a disabled channel is not validated."""
        config = HousekeeperConfig(webhook=WebhookConfig(enabled=False, url="hooks.example.com"))
        assert len(channels_from_config(config)) == 1


# =============================================================================
# Dispatcher tests
# =============================================================================


class _StubChannel(BaseChannel):
    channel_type = "stub"

    def __init__(self, result=None, error=None, enabled=True):
        self.result = result
        self.error = error
        self.enabled = enabled
        self.delivered: list[Notification] = []

    def is_enabled(self) -> bool:
        return self.enabled

    def validate_config(self) -> bool:
        return True

    def deliver(self, notification):
        self.delivered.append(notification)
        if self.error:
            raise self.error
        return self.result or DeliveryResult(
            success=True, channel=self.channel_type, notification_id=notification.notification_id
        )


class TestNotificationDispatcher:
    """Tests for NotificationDispatcher."""

    def test_sends_to_enabled_channels(self, notification):
        """Test every enabled channel receives the notification."""
        first, disabled, second = _StubChannel(), _StubChannel(enabled=False), _StubChannel()
        results = NotificationDispatcher([first, disabled, second]).send_notification(notification)

        assert len(results) == 2
        assert first.delivered == [notification]
        assert disabled.delivered == []
        assert second.delivered == [notification]

    def test_channel_exception_contained(self, notification, caplog):
        """Test a raising channel does not stop the others."""
        broken, healthy = _StubChannel(error=RuntimeError("boom")), _StubChannel()

        results = NotificationDispatcher([broken, healthy]).send_notification(notification)

        assert [r.success for r in results] == [False, True]
        assert results[0].error_message == "boom"
        assert "Delivery error for stub" in caplog.text

    def test_close(self):
        """Test closing the dispatcher closes its channels."""
        channel = Mock(spec=BaseChannel)
        dispatcher = NotificationDispatcher()
        dispatcher.add_channel(channel)
        dispatcher.close()
        channel.close.assert_called_once()
