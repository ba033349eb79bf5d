"""E-mail notifications for mirror runs.

Notifications are best effort: a delivery failure is logged and reported
through the return value of ``send()`` but never raised into the run.

Templates are ``str.format`` strings.  Placeholders with no value in the
render context are left in the output verbatim, so a typo in a template
degrades the message instead of suppressing it.
"""

from __future__ import annotations

import logging
import smtplib
import ssl
from email.message import EmailMessage

from .config_schema import MessageTemplate, NotificationConfig
from .errors import NotificationError

logger = logging.getLogger(__name__)

DIRECTORY_NOT_FOUND = "directory_not_found"
SYNC_STARTED = "sync_started"
SYNC_COMPLETED = "sync_completed"
IO_EXCEPTION = "io_exception"


class _KeepMissing(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def render_template(
    template: MessageTemplate, context: dict
) -> tuple[str, str]:
    """Render *template* into ``(subject, body)``.

    Raises:
        NotificationError: If the template is malformed.
    """
    values = _KeepMissing(context)
    try:
        return (
            template.subject.format_map(values),
            template.body.format_map(values),
        )
    except (ValueError, IndexError, AttributeError) as exc:
        raise NotificationError(f"Malformed template: {exc}") from exc


class NullNotifier:
    """Notifier used when notifications are disabled or unconfigured."""

    def send(self, template_name: str, **context) -> bool:
        logger.debug("Notification %s suppressed", template_name)
        return False


class EmailNotifier:
    """Send templated notifications over SMTP.

    Args:
        settings: The ``notification`` config section.
    """

    def __init__(self, settings: NotificationConfig) -> None:
        self.settings = settings

    def send(self, template_name: str, **context) -> bool:
        """Render and deliver one notification.

        Args:
            template_name: One of ``directory_not_found``, ``sync_started``,
                ``sync_completed``, ``io_exception``.
            **context: Values for the template placeholders.

        Returns:
            ``True`` if the message was handed to the SMTP server.
        """
        try:
            template = getattr(self.settings.templates, template_name, None)
            if not isinstance(template, MessageTemplate):
                raise NotificationError(
                    f"Unknown notification template: {template_name}"
                )
            subject, body = render_template(template, context)
            self._deliver(self._build_message(subject, body))
        except NotificationError as exc:
            logger.warning("Notification %s not sent: %s", template_name, exc)
            return False
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning(
                "Notification %s not sent: SMTP error: %s", template_name, exc
            )
            return False

        logger.info(
            "Sent %s notification to %s",
            template_name,
            self.settings.recipient_address,
        )
        return True

    def _build_message(self, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.settings.sender_email
        message["To"] = self.settings.recipient_address
        message["Subject"] = subject
        message.set_content(body)
        return message

    def _deliver(self, message: EmailMessage) -> None:
        s = self.settings
        context = ssl.create_default_context()
        if s.use_ssl:
            smtp: smtplib.SMTP = smtplib.SMTP_SSL(
                s.smtp_server, s.sender_port, timeout=s.timeout, context=context
            )
        else:
            smtp = smtplib.SMTP(s.smtp_server, s.sender_port, timeout=s.timeout)
        with smtp:
            if not s.use_ssl:
                smtp.ehlo()
                if smtp.has_extn("starttls"):
                    smtp.starttls(context=context)
                    smtp.ehlo()
            if s.credential_secret:
                smtp.login(s.sender_email, s.credential_secret)
            smtp.send_message(message)


def create_notifier(
    settings: NotificationConfig, enabled: bool = True
) -> EmailNotifier | NullNotifier:
    """Return an ``EmailNotifier`` if enabled and configured."""
    if not enabled:
        return NullNotifier()
    if not settings.is_configured:
        logger.warning(
            "Notifications requested but sender, recipient or SMTP server "
            "is not configured"
        )
        return NullNotifier()
    return EmailNotifier(settings)
