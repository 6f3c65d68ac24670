# services/messaging/notification_service.py
import asyncio
import logging
from functools import partial
from typing import Optional

from .transports import EmailTransport

logger = logging.getLogger(__name__)

OTP_EMAIL_SUBJECT = "Your EtherWorld Verification Code"

OTP_EMAIL_TEMPLATE = """\
<!DOCTYPE html>
<html>
<head>
  <style>
    body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Arial, sans-serif; line-height: 1.6; color: #333; }}
    .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
    .code-box {{ background: #f5f5f5; border: 2px solid #007AFF; border-radius: 8px; padding: 20px; text-align: center; margin: 30px 0; }}
    .code {{ font-size: 36px; font-weight: bold; letter-spacing: 8px; color: #007AFF; }}
    .footer {{ font-size: 12px; color: #666; margin-top: 30px; }}
  </style>
</head>
<body>
  <div class="container">
    <h2>Welcome to EtherWorld</h2>
    <p>Your verification code is:</p>
    <div class="code-box">
      <div class="code">{code}</div>
    </div>
    <p>This code will expire in <strong>{minutes} minutes</strong>.</p>
    <p>If you didn't request this code, please ignore this email.</p>
    <div class="footer">
      <p>&copy; EtherWorld. All rights reserved.</p>
    </div>
  </div>
</body>
</html>
"""


def render_otp_email(code: str, ttl_minutes: int = 10) -> str:
    return OTP_EMAIL_TEMPLATE.format(code=code, minutes=ttl_minutes)


class NotificationService:
    """Deliver OTP emails through the configured transport."""

    def __init__(
        self,
        transport: EmailTransport,
        max_retries: int = 3,
        backoff_seconds: float = 1.0,
        ttl_minutes: int = 10,
    ):
        self.transport = transport
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds
        self.ttl_minutes = ttl_minutes

    @staticmethod
    async def _run_blocking(fn, *args, **kwargs):
        """Run a blocking function in the default threadpool so the event loop isn't blocked."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(fn, *args, **kwargs))

    async def send_email_otp(self, email: str, otp_code: str) -> bool:
        """Send the OTP email. Returns True on success, False once retries are spent; never raises."""
        logger.info(f"📧 [EMAIL] Sending OTP to {email} via {self.transport.name}")
        html = render_otp_email(otp_code, self.ttl_minutes)

        attempt = 0
        backoff = self.backoff_seconds
        while attempt < self.max_retries:
            attempt += 1
            try:
                message_id: Optional[str] = await self._run_blocking(
                    self.transport.send, email, OTP_EMAIL_SUBJECT, html, code=otp_code
                )
                logger.info(f"📧 [EMAIL] Sent OTP to {email} (attempt {attempt}) id: {message_id}")
                return True
            except Exception as exc:
                logger.exception(f"📧 [EMAIL] Error sending OTP to {email} (attempt {attempt}): {exc}")
                if attempt < self.max_retries:
                    await asyncio.sleep(backoff)
                    backoff *= 2

        logger.error(f"📧 [EMAIL] Failed to send OTP to {email} after {attempt} attempts.")
        return False
