"""Authentication endpoints."""
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from etherworld_auth.api.deps import (
    get_clock,
    get_notification_service,
    get_otp_service,
    get_rate_limiter,
)
from etherworld_auth.app.config import Settings
from etherworld_auth.app.dependencies import get_app_settings
from etherworld_auth.core.clock import Clock
from etherworld_auth.core.rate_limiter import RateLimiter
from etherworld_auth.core.security import (
    create_session_token,
    derive_user_id,
    display_name_for,
    normalize_email,
    session_expiry,
)
from etherworld_auth.schemas.auth import (
    ErrorResponse,
    SendOTPRequest,
    SendOTPResponse,
    UserResponse,
    VerifyOTPRequest,
    VerifyOTPResponse,
)
from etherworld_auth.services import NotificationService, OTPService

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.post(
    "/send-otp",
    response_model=SendOTPResponse,
    responses={**ERROR_RESPONSES, 429: {"model": ErrorResponse}},
)
async def send_otp(
    request: SendOTPRequest,
    background_tasks: BackgroundTasks,
    otp_service: OTPService = Depends(get_otp_service),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    notification_service: NotificationService = Depends(get_notification_service),
):
    """
    Send an OTP to an email address.

    - Minimal syntax check (must contain ``@``)
    - Per-email sliding-window rate limit
    - Stores the code before the email goes out; delivery happens in the
      background and its outcome is never reported to the caller
    """
    email = request.email.strip() if request.email else ""
    if "@" not in email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid email address",
        )

    try:
        allowed, retry_after = await rate_limiter.check(normalize_email(email))
        if not allowed:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many attempts. Please try again later.",
                headers={"Retry-After": str(retry_after)},
            )

        otp_code = await otp_service.issue(email)
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception(f"Error sending OTP to {email}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send OTP",
        )

    background_tasks.add_task(notification_service.send_email_otp, email, otp_code)

    return SendOTPResponse(success=True, message="OTP sent successfully")


@router.post(
    "/verify-otp",
    response_model=VerifyOTPResponse,
    responses=ERROR_RESPONSES,
)
async def verify_otp(
    request: VerifyOTPRequest,
    otp_service: OTPService = Depends(get_otp_service),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_app_settings),
):
    """
    Verify an OTP and issue a session.

    Every failed check answers 400 with a message naming the cause; the
    challenge is consumed on success.
    """
    if not request.email or not request.code:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email and code are required",
        )

    try:
        result = await otp_service.verify(request.email, request.code)
    except Exception as exc:
        logger.exception(f"Error verifying OTP for {request.email}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to verify OTP",
        )

    if not result.ok:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=result.message,
        )

    email = normalize_email(request.email)
    issued_at = clock.now()
    expires_at = session_expiry(issued_at, settings.SESSION_TTL_DAYS)

    logger.info(f"✅ User verified: {email}")

    return VerifyOTPResponse(
        token=create_session_token(email, issued_at, expires_at),
        user=UserResponse(
            id=derive_user_id(email),
            email=email,
            name=display_name_for(request.email.strip()),
            created_at=issued_at,
        ),
        expires_at=expires_at,
    )
