"""Email transports for OTP delivery.

Selected from settings:
  EMAIL_SERVICE=resend + RESEND_API_KEY     -> Resend API
  EMAIL_SERVICE=gmail + EMAIL_USER/PASSWORD -> smtp.gmail.com with an app password
  SMTP_HOST (+ SMTP_PORT, EMAIL_USER/PASSWORD) -> any SMTP relay
  nothing configured                        -> log-only test mode

All transports are blocking; callers run them in a thread pool.
"""
import logging
import smtplib
from abc import ABC, abstractmethod
from email.mime.text import MIMEText
from typing import Optional

import resend

from etherworld_auth.app.config import Settings

logger = logging.getLogger(__name__)

GMAIL_SMTP_HOST = "smtp.gmail.com"
GMAIL_SMTP_PORT = 587


class EmailTransport(ABC):
    name = "base"

    def __init__(self, sender: str):
        self.sender = sender

    @abstractmethod
    def send(self, to: str, subject: str, html: str, code: Optional[str] = None) -> Optional[str]:
        """Deliver one message. Returns a provider message id if there is one; raises on failure.

        ``code`` is the OTP already rendered into ``html``. Only transports that
        do not really deliver look at it.
        """


class ResendTransport(EmailTransport):
    name = "resend"

    def __init__(self, sender: str, api_key: str):
        super().__init__(sender)
        # the SDK keeps its key globally
        resend.api_key = api_key

    def send(self, to: str, subject: str, html: str, code: Optional[str] = None) -> Optional[str]:
        resp = resend.Emails.send({
            "from": self.sender,
            "to": to,
            "subject": subject,
            "html": html,
        })
        return resp.get("id") if isinstance(resp, dict) else None


class SMTPTransport(EmailTransport):
    name = "smtp"

    def __init__(
        self,
        sender: str,
        host: str,
        port: int,
        user: Optional[str] = None,
        password: Optional[str] = None,
        timeout: int = 15,
    ):
        super().__init__(sender)
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.timeout = timeout

    def send(self, to: str, subject: str, html: str, code: Optional[str] = None) -> Optional[str]:
        msg = MIMEText(html, "html")
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = to
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            server.starttls()
            if self.user and self.password:
                server.login(self.user, self.password)
            server.send_message(msg)
        return None


class LogTransport(EmailTransport):
    """Test mode: print what would have been sent, code included."""

    name = "log"

    def send(self, to: str, subject: str, html: str, code: Optional[str] = None) -> Optional[str]:
        logger.warning(
            f"📧 TEST MODE - would send email | to={to} | subject={subject} | code={code or 'n/a'}"
        )
        return "test-mode"


def build_transport(settings: Settings) -> EmailTransport:
    mode = settings.email_mode
    sender = settings.email_sender
    if mode == "resend":
        return ResendTransport(sender, settings.RESEND_API_KEY)
    if mode == "gmail":
        return SMTPTransport(
            sender,
            host=GMAIL_SMTP_HOST,
            port=GMAIL_SMTP_PORT,
            user=settings.EMAIL_USER,
            password=settings.EMAIL_PASSWORD,
            timeout=settings.SMTP_TIMEOUT_SECS,
        )
    if mode == "smtp":
        return SMTPTransport(
            sender,
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            user=settings.EMAIL_USER,
            password=settings.EMAIL_PASSWORD,
            timeout=settings.SMTP_TIMEOUT_SECS,
        )

    logger.warning("⚠️  No email configuration found, running in TEST MODE")
    return LogTransport(sender)
