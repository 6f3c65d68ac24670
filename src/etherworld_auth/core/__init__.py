"""
Core package initializer.

This package provides the building blocks of the OTP service: the clock,
per-key locks, OTP generation and session tokens, challenge storage and
send-rate limiting.
"""

from .security import (
    normalize_email,
    generate_otp,
    codes_match,
    derive_user_id,
    display_name_for,
    create_session_token,
    session_expiry,
)

from .otp_store import (
    OTPStore,
    InMemoryOTPStore,
    RedisOTPStore,
)

from .rate_limiter import (
    RateLimiter,
    InMemoryRateLimiter,
    RedisRateLimiter,
)

from .clock import Clock, SystemClock, system_clock
from .locks import KeyedLock

__all__ = [
    # Security
    "normalize_email",
    "generate_otp",
    "codes_match",
    "derive_user_id",
    "display_name_for",
    "create_session_token",
    "session_expiry",
    # Stores
    "OTPStore",
    "InMemoryOTPStore",
    "RedisOTPStore",
    "RateLimiter",
    "InMemoryRateLimiter",
    "RedisRateLimiter",
    # Time and locking
    "Clock",
    "SystemClock",
    "system_clock",
    "KeyedLock",
]
