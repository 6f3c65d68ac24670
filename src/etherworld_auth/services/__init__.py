"""
Services package initializer.

Re-exports the service classes so callers can import from
`etherworld_auth.services` instead of deep module paths.
"""

from .otp_service import OTPService
from .messaging import NotificationService

__all__ = [
    "NotificationService",
    "OTPService",
]
