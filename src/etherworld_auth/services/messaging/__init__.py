"""
Messaging package initializer.

Provides the email transports and the OTP notification service.
"""

from .notification_service import NotificationService, render_otp_email
from .transports import (
    EmailTransport,
    LogTransport,
    ResendTransport,
    SMTPTransport,
    build_transport,
)

__all__ = [
    "NotificationService",
    "render_otp_email",
    "EmailTransport",
    "LogTransport",
    "ResendTransport",
    "SMTPTransport",
    "build_transport",
]
