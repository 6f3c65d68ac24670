"""Authentication schemas."""
from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

from etherworld_auth.core.clock import to_iso
from etherworld_auth.models.enums import AuthProvider

IsoDatetime = Annotated[datetime, PlainSerializer(to_iso, return_type=str)]


class CamelModel(BaseModel):
    """Responses use the camelCase keys the mobile client decodes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SendOTPRequest(BaseModel):
    """Request to send OTP. Presence and shape are checked by the endpoint."""
    email: Optional[str] = None


class SendOTPResponse(BaseModel):
    """Response after sending OTP."""
    success: bool = True
    message: str = "OTP sent successfully"


class VerifyOTPRequest(BaseModel):
    """Request to verify OTP."""
    email: Optional[str] = None
    code: Optional[str] = None


class UserResponse(CamelModel):
    """Minimal user record minted on successful verification."""
    id: str
    email: str
    name: str
    auth_provider: AuthProvider = AuthProvider.email
    created_at: IsoDatetime


class VerifyOTPResponse(CamelModel):
    """Response after OTP verification."""
    token: str
    user: UserResponse
    expires_at: IsoDatetime


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(CamelModel):
    status: str = "ok"
    timestamp: IsoDatetime
    email_configured: bool
