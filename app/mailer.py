"""SMTP notifications sent to the careers administrator."""
from __future__ import annotations

import html
import json
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr
from typing import Callable, Optional

from .models import ApplicationRecord

logger = logging.getLogger("careers.mailer")

NOTIFICATION_SUBJECT = "New Application Received"


class MailerError(RuntimeError):
    """Raised when an email could not be handed to the SMTP relay."""


@dataclass(frozen=True)
class SMTPSettings:
    """Connection parameters for the outbound SMTP relay."""

    host: str
    port: int
    username: Optional[str]
    password: Optional[str]
    use_tls: bool = True
    timeout: int = 30


def render_notification(record: ApplicationRecord) -> str:
    """Return the HTML body announcing a new application."""

    filters = json.dumps(record.search_filters, indent=2, ensure_ascii=False)
    return (
        "<h3>New Job Application</h3>\n"
        f"<p><strong>Name:</strong> {html.escape(record.full_name)}</p>\n"
        f"<p><strong>Email:</strong> {html.escape(record.email)}</p>\n"
        f"<p><strong>Country:</strong> {html.escape(record.country)}</p>\n"
        "<h4>Search Filters:</h4>\n"
        f"<pre>{html.escape(filters)}</pre>\n"
    )


class Mailer:
    """Send administrator notifications through an SMTP relay."""

    def __init__(
        self,
        settings: SMTPSettings,
        *,
        admin_email: Optional[str],
        sender_name: str = "PLC Careers",
        smtp_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP,
    ) -> None:
        self._settings = settings
        self._admin_email = (admin_email or "").strip() or None
        self._sender_name = sender_name
        self._smtp_factory = smtp_factory

    @property
    def enabled(self) -> bool:
        return self._admin_email is not None

    def _open(self) -> smtplib.SMTP:
        settings = self._settings
        client = self._smtp_factory(settings.host, settings.port, timeout=settings.timeout)
        try:
            if settings.use_tls:
                client.starttls(context=ssl.create_default_context())
            if settings.username and settings.password:
                client.login(settings.username, settings.password)
        except (smtplib.SMTPException, OSError):
            client.close()
            raise
        return client

    def verify(self) -> bool:
        """Check that the relay accepts a connection and the configured credentials."""

        if not self.enabled:
            logger.warning("Email notifications disabled: ADMIN_EMAIL is not configured")
            return False
        try:
            client = self._open()
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Email server error: %s", exc)
            return False
        try:
            client.quit()
        except (smtplib.SMTPException, OSError):
            client.close()
        logger.info("Email server ready")
        return True

    def send_html(self, *, subject: str, body: str) -> bool:
        """Send an HTML email to the administrator; returns ``False`` when mail is disabled."""

        if not self.enabled:
            logger.warning("Skipping email %r: no administrator address configured", subject)
            return False

        message = EmailMessage()
        message["From"] = formataddr((self._sender_name, self._admin_email))
        message["To"] = self._admin_email
        message["Subject"] = subject
        message.set_content("This message requires an HTML capable email client.")
        message.add_alternative(body, subtype="html")

        try:
            client = self._open()
            try:
                client.send_message(message)
            finally:
                try:
                    client.quit()
                except (smtplib.SMTPException, OSError):
                    client.close()
        except (smtplib.SMTPException, OSError) as exc:
            raise MailerError(f"Failed to send email {subject!r}: {exc}") from exc
        return True

    def send_application_notice(self, record: ApplicationRecord) -> None:
        """Email the administrator a summary of a newly stored application."""

        if self.send_html(subject=NOTIFICATION_SUBJECT, body=render_notification(record)):
            logger.info("Notification sent for application %s", record.id)


__all__ = ["Mailer", "MailerError", "NOTIFICATION_SUBJECT", "SMTPSettings", "render_notification"]
