"""Domain records and enumerations."""

from .enums import AuthProvider, OTPVerifyStatus
from .otp import OTPRecord

__all__ = [
    "AuthProvider",
    "OTPVerifyStatus",
    "OTPRecord",
]
