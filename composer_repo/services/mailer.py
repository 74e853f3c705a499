from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from pathlib import Path
from typing import Any, List, Protocol

from jinja2 import Environment, FileSystemLoader, select_autoescape

from composer_repo.domain.errors import NotificationDeliveryError
from composer_repo.domain.models import MailerSettings

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates"

templates = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html", "html.j2"]),
)


def render_template(name: str, **context: Any) -> str:
    return templates.get_template(name).render(**context)


class Mailer(Protocol):
    def send(self, recipients: List[str], subject: str, html_body: str) -> None:
        """Deliver a mail or raise."""
        ...


class SmtpMailer:
    """
    Sends HTML mails through a plain SMTP server.
    """

    def __init__(self, settings: MailerSettings):
        self.settings = settings

    def build_message(self, recipients: List[str], subject: str, html_body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.settings.sender
        message["To"] = ", ".join(recipients)
        message["Subject"] = subject
        message.set_content("This message requires an HTML capable mail client.")
        message.add_alternative(html_body, subtype="html")
        return message

    def send(self, recipients: List[str], subject: str, html_body: str) -> None:
        settings = self.settings
        if not settings.host:
            raise NotificationDeliveryError("No SMTP host configured")

        message = self.build_message(recipients, subject, html_body)
        try:
            with smtplib.SMTP(settings.host, settings.port, timeout=settings.timeout_seconds) as smtp:
                if settings.use_tls:
                    smtp.starttls()
                if settings.username:
                    smtp.login(settings.username, settings.password or "")
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationDeliveryError(f"Failed to send '{subject}': {e}") from e

        logger.info(f"Sent '{subject}' to {len(recipients)} recipient(s)")
