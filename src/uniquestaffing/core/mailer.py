from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage

from uniquestaffing.config import Settings

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class OutgoingMail:
    to: str
    subject: str
    body: str


@dataclass(slots=True)
class Mailer:
    """Sends mail through SMTP when a host is configured, otherwise records it in the outbox."""

    settings: Settings
    outbox: list[OutgoingMail] = field(default_factory=list)

    def send(self, to: str, subject: str, body: str) -> bool:
        if not self.settings.smtp_host:
            self.outbox.append(OutgoingMail(to=to, subject=subject, body=body))
            logger.info("SMTP not configured; queued mail to=%s subject=%s", to, subject)
            return True

        message = EmailMessage()
        message["From"] = self.settings.mail_from
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        try:
            with smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port, timeout=10) as smtp:
                smtp.send_message(message)
        except (OSError, smtplib.SMTPException) as exc:
            logger.error("Failed to send mail to=%s subject=%s error=%s", to, subject, exc)
            return False
        logger.info("Sent mail to=%s subject=%s", to, subject)
        return True
