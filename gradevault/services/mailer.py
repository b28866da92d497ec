"""Outbound email over SMTP."""

import smtplib
from email.message import EmailMessage
from email.utils import formataddr

from gradevault.core.errors import DependencyFailure
from gradevault.core.logging import get_logger
from gradevault.core.settings import Settings

logger = get_logger("email")


class EmailService:
    def __init__(self, settings: Settings):
        self.settings = settings

    def build_message(self, to_address: str, subject: str, html_body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = formataddr((self.settings.smtp_sender_name, self.settings.smtp_sender_email))
        message["To"] = to_address
        message["Subject"] = subject
        message.set_content("This message requires an HTML capable mail client.")
        message.add_alternative(html_body, subtype="html")
        return message

    def send_email(self, to_address: str, subject: str, html_body: str) -> None:
        settings = self.settings
        message = self.build_message(to_address, subject, html_body)
        try:
            with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=settings.smtp_timeout_seconds) as client:
                if settings.smtp_use_tls:
                    client.starttls()
                if settings.smtp_username:
                    client.login(settings.smtp_username, settings.smtp_password or "")
                client.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Error sending email to %s", to_address, exc_info=exc)
            raise DependencyFailure("Email delivery failed.") from exc
        logger.info("Email sent to %s", to_address)
