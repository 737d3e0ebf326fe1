from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import Protocol

logger = logging.getLogger(__name__)


class EmailSender(Protocol):
    def send(self, *, to: str, subject: str, body: str) -> None:
        """Deliver one message; raise on failure."""

        raise NotImplementedError


class LoggingEmailSender(EmailSender):
    """Default sender when no SMTP host is configured."""

    def send(self, *, to: str, subject: str, body: str) -> None:
        logger.info("email to=%s subject=%s", to, subject)


class SmtpEmailSender(EmailSender):
    def __init__(self, *, host: str, port: int, user: str, password: str, sender: str):
        self._host = host
        self._port = int(port)
        self._user = user
        self._password = password
        self._sender = sender

    def send(self, *, to: str, subject: str, body: str) -> None:
        msg = EmailMessage()
        msg["From"] = self._sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(body, subtype="html")

        with smtplib.SMTP(self._host, self._port, timeout=15) as smtp:
            if self._port == 587:
                smtp.starttls()
            if self._user:
                smtp.login(self._user, self._password)
            smtp.send_message(msg)
