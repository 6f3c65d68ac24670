"""Enumerations shared by the OTP service and the API layer."""
import enum


class AuthProvider(str, enum.Enum):
    email = "email"


class OTPVerifyStatus(str, enum.Enum):
    """Outcome of checking a submitted code against the stored challenge."""

    SUCCESS = "success"
    NO_ACTIVE_CHALLENGE = "no_active_challenge"
    EXPIRED = "expired"
    ATTEMPTS_EXHAUSTED = "attempts_exhausted"
    INVALID_CODE = "invalid_code"

    @property
    def ok(self) -> bool:
        return self is OTPVerifyStatus.SUCCESS

    @property
    def message(self) -> str:
        return _VERIFY_MESSAGES[self]


_VERIFY_MESSAGES = {
    OTPVerifyStatus.SUCCESS: "OTP verified successfully",
    OTPVerifyStatus.NO_ACTIVE_CHALLENGE: "No OTP found. Please request a new code.",
    OTPVerifyStatus.EXPIRED: "OTP expired. Please request a new code.",
    OTPVerifyStatus.ATTEMPTS_EXHAUSTED: "Too many failed attempts. Please request a new code.",
    OTPVerifyStatus.INVALID_CODE: "Invalid verification code.",
}
