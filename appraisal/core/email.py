"""Mail transport used by the notification dispatcher."""

import asyncio
import logging
import re
import smtplib
import uuid
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import List, Optional

from appraisal.config import settings

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass
class EmailResult:
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


def is_valid_email(email) -> bool:
    return isinstance(email, str) and bool(EMAIL_RE.match(email))


def normalize_recipients(to: str | List[str]) -> List[str]:
    emails = to if isinstance(to, list) else [to]
    return [e for e in emails if is_valid_email(e)]


class EmailService:
    """Email service for sending emails via SMTP."""

    def __init__(
        self,
        enabled: Optional[bool] = None,
        smtp_host: Optional[str] = None,
        smtp_port: Optional[int] = None,
        smtp_secure: Optional[bool] = None,
        smtp_user: Optional[str] = None,
        smtp_password: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
    ):
        self.enabled = settings.EMAIL_ENABLED if enabled is None else enabled
        self.smtp_host = smtp_host or settings.SMTP_HOST
        self.smtp_port = smtp_port or settings.SMTP_PORT
        self.smtp_secure = settings.SMTP_SECURE if smtp_secure is None else smtp_secure
        self.smtp_user = smtp_user or settings.SMTP_USER
        self.smtp_password = smtp_password or settings.SMTP_PASSWORD
        self.from_email = from_email or settings.EMAIL_FROM
        self.from_name = from_name or settings.EMAIL_FROM_NAME

    async def send(
        self,
        to: str | List[str],
        subject: str,
        html: str,
        text: Optional[str] = None,
    ) -> EmailResult:
        """
        Send an email.

        Never raises: transport errors come back as ``EmailResult(success=False)``.
        When sending is disabled the call is logged and reported as a success.
        """
        if not self.enabled:
            logger.info("Email disabled, skipping send of %r", subject)
            return EmailResult(success=True)

        recipients = normalize_recipients(to)
        if not recipients:
            logger.error("No valid email addresses provided")
            return EmailResult(success=False, error="No valid email addresses provided")

        msg = self._build_message(recipients, subject, html, text)
        try:
            await asyncio.to_thread(self._deliver, msg, recipients)
        except Exception as e:
            logger.error("Email send failed: %s", e)
            return EmailResult(success=False, error=str(e) or type(e).__name__)

        if settings.EMAIL_DEBUG:
            logger.debug("Email sent: %s", msg["Message-ID"])
        return EmailResult(success=True, message_id=msg["Message-ID"])

    def _build_message(
        self, recipients: List[str], subject: str, html: str, text: Optional[str]
    ) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["From"] = formataddr((self.from_name, self.from_email))
        msg["To"] = ", ".join(recipients)
        msg["Subject"] = subject
        domain = self.from_email.split("@")[-1]
        msg["Message-ID"] = f"<{uuid.uuid4().hex}@{domain}>"
        if text:
            msg.attach(MIMEText(text, "plain", "utf-8"))
        msg.attach(MIMEText(html, "html", "utf-8"))
        return msg

    def _deliver(self, msg: MIMEMultipart, recipients: List[str]) -> None:
        if not self.smtp_host:
            raise RuntimeError("SMTP_HOST is not configured")

        if self.smtp_secure:
            server = smtplib.SMTP_SSL(self.smtp_host, self.smtp_port)
        else:
            server = smtplib.SMTP(self.smtp_host, self.smtp_port)
        with server:
            if not self.smtp_secure:
                # plain relays (port 25, local catchers) do not offer STARTTLS
                server.ehlo()
                if server.has_extn("starttls"):
                    server.starttls()
                    server.ehlo()
            if self.smtp_user and self.smtp_password:
                server.login(self.smtp_user, self.smtp_password)
            server.send_message(msg, from_addr=self.from_email, to_addrs=recipients)
