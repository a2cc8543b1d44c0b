"""SMTP mail transport."""

from __future__ import annotations

import asyncio
import smtplib
from email.message import EmailMessage

from taskbuster.config import Settings, settings
from taskbuster.errors import TransportError
from taskbuster.logging import get_logger

logger = get_logger(__name__)


class SmtpMailer:
    def __init__(self, config: Settings | None = None) -> None:
        self.config = config or settings

    def _build_message(self, to: str, subject: str, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.config.GMAIL_USER or ""
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(body)
        return msg

    def _send_sync(self, msg: EmailMessage) -> None:
        with smtplib.SMTP_SSL(
            self.config.SMTP_HOST,
            self.config.SMTP_PORT,
            timeout=self.config.SMTP_TIMEOUT_SECONDS,
        ) as server:
            server.login(self.config.GMAIL_USER or "", self.config.GMAIL_PASSWORD or "")
            server.send_message(msg)

    async def send(self, to: str, subject: str, body: str) -> None:
        """Deliver one message; blocks a worker thread, not the event loop."""
        msg = self._build_message(to, subject, body)
        try:
            await asyncio.to_thread(self._send_sync, msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error(f"SMTP send to {to} via {self.config.SMTP_HOST} failed: {exc!r}")
            raise TransportError("mail", "message could not be sent") from exc
        logger.info(f"Email sent to {to} (subject={subject!r})")
