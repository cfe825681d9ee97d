"""
Email notification channel.

Delivers run reports by SMTP as plain text mail.
"""

import smtplib
from email.message import EmailMessage
from email.utils import formatdate

from housekeeper.config import MailConfig
from housekeeper.notifications.channels.base import BaseChannel
from housekeeper.notifications.models import DeliveryResult, Notification


class EmailChannel(BaseChannel):
    """
    Notification delivery via email.

    Opens one SMTP connection per delivery; a run sends a single report,
    so connections are not pooled.
    """

    channel_type = "email"

    def __init__(self, config: MailConfig, smtp_factory: type[smtplib.SMTP] = smtplib.SMTP):
        """
        Initialize email channel.

        Args:
            config: Mail configuration
            smtp_factory: SMTP client class, replaceable in tests
        """
        self.mail_config = config
        self._smtp_factory = smtp_factory

    def is_enabled(self) -> bool:
        return self.mail_config.enabled

    def validate_config(self) -> bool:
        """Validate email configuration."""
        config = self.mail_config
        if not config.smtp.server or not config.from_address or not config.to:
            return False
        return all("@" in addr for addr in [config.from_address, *config.to])

    def _prepare_message(self, notification: Notification) -> EmailMessage:
        """Prepare email message from notification."""
        config = self.mail_config

        msg = EmailMessage()
        msg["From"] = config.from_address
        msg["To"] = ", ".join(config.to)
        msg["Subject"] = notification.title
        msg["Date"] = formatdate(localtime=True)
        msg["X-Notification-ID"] = notification.notification_id
        msg["X-Notification-Severity"] = notification.severity.value
        msg.set_content(notification.message)
        return msg

    def deliver(self, notification: Notification) -> DeliveryResult:
        """
        Deliver notification via email.

        Args:
            notification: Notification to deliver

        Returns:
            DeliveryResult with delivery status
        """
        if not self.validate_config():
            return self._failure(notification, "Invalid email configuration")

        smtp = self.mail_config.smtp
        try:
            message = self._prepare_message(notification)
            with self._smtp_factory(smtp.server, smtp.port, timeout=smtp.timeout_seconds) as connection:
                if smtp.use_tls:
                    connection.starttls()
                if smtp.username and smtp.password:
                    connection.login(smtp.username, smtp.password)
                connection.send_message(
                    message,
                    from_addr=self.mail_config.from_address,
                    to_addrs=self.mail_config.to,
                )

        except smtplib.SMTPAuthenticationError as e:
            return self._failure(notification, f"SMTP authentication failed: {e}")

        except smtplib.SMTPRecipientsRefused as e:
            return self._failure(notification, f"Recipients refused: {e}")

        except smtplib.SMTPException as e:
            return self._failure(notification, f"SMTP error: {e}")

        except (OSError, TimeoutError) as e:
            return self._failure(notification, f"Connection error: {e}")

        self._log_delivery(notification, True)
        return DeliveryResult(
            success=True,
            channel=self.channel_type,
            notification_id=notification.notification_id,
        )
