from .auth import (
    SendOTPRequest,
    SendOTPResponse,
    VerifyOTPRequest,
    VerifyOTPResponse,
    UserResponse,
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    "SendOTPRequest",
    "SendOTPResponse",
    "VerifyOTPRequest",
    "VerifyOTPResponse",
    "UserResponse",
    "ErrorResponse",
    "HealthResponse",
]
