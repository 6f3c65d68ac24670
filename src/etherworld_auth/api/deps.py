"""Dependencies for API endpoints."""
from fastapi import Request

from etherworld_auth.core.clock import Clock
from etherworld_auth.core.rate_limiter import RateLimiter
from etherworld_auth.services.messaging import NotificationService
from etherworld_auth.services.otp_service import OTPService


def get_otp_service(request: Request) -> OTPService:
    return request.app.state.otp_service


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_notification_service(request: Request) -> NotificationService:
    return request.app.state.notification_service


def get_clock(request: Request) -> Clock:
    return request.app.state.clock
