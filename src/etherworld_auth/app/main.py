import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from etherworld_auth import __version__
from etherworld_auth.api.v1.router import api_router
from etherworld_auth.app.config import Settings, get_settings
from etherworld_auth.app.dependencies import get_app_settings
from etherworld_auth.app.exceptions import register_exception_handlers
from etherworld_auth.app.logging_config import setup_logging
from etherworld_auth.app.middleware import register_middleware
from etherworld_auth.core.cache import close_redis, create_otp_store, create_rate_limiter, init_redis
from etherworld_auth.core.clock import Clock, system_clock
from etherworld_auth.schemas.auth import HealthResponse
from etherworld_auth.services import NotificationService, OTPService
from etherworld_auth.services.messaging import EmailTransport, build_transport
from etherworld_auth.tasks.sweeper import OTPSweeper

logger = logging.getLogger(__name__)


def build_services(
    app: FastAPI,
    settings: Settings,
    clock: Clock,
    transport: Optional[EmailTransport] = None,
    redis=None,
) -> None:
    """Attach the OTP service, rate limiter, notifier and sweeper to ``app.state``."""
    otp_service = OTPService(
        store=create_otp_store(settings, redis),
        clock=clock,
        ttl_seconds=settings.OTP_TTL_SECS,
        max_attempts=settings.OTP_MAX_ATTEMPTS,
    )
    rate_limiter = create_rate_limiter(settings, redis, clock=clock)

    app.state.settings = settings
    app.state.clock = clock
    app.state.otp_service = otp_service
    app.state.rate_limiter = rate_limiter
    app.state.notification_service = NotificationService(
        transport or build_transport(settings),
        max_retries=settings.EMAIL_MAX_RETRIES,
        ttl_minutes=settings.OTP_TTL_SECS // 60,
    )
    app.state.sweeper = OTPSweeper(
        otp_service,
        interval_seconds=settings.OTP_SWEEP_INTERVAL_SECS,
        rate_limiter=rate_limiter,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    settings: Settings = app.state.settings
    logger.info(f"🚀 Starting {settings.APP_NAME} ({settings.ENVIRONMENT})")
    logger.info(f"📧 Email mode: {settings.email_mode}")
    if not settings.OTP_SECRET and not settings.is_development:
        logger.warning("OTP_SECRET is not set outside development")

    redis = await init_redis(settings.REDIS_URL)
    if redis is not None:
        build_services(
            app,
            settings,
            app.state.clock,
            transport=app.state.notification_service.transport,
            redis=redis,
        )
    app.state.redis = redis
    app.state.sweeper.start()

    yield

    # Shutdown
    await app.state.sweeper.stop()
    await close_redis(redis)
    logger.info("Shutting down...")


def create_application(
    settings: Optional[Settings] = None,
    clock: Optional[Clock] = None,
    transport: Optional[EmailTransport] = None,
) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings)

    application = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        version=__version__,
        lifespan=lifespan,
    )

    # In-memory services up front; the lifespan swaps in Redis when configured.
    build_services(application, settings, clock or system_clock, transport)

    # Middleware
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_middleware(application)
    register_exception_handlers(application)

    # Routers
    application.include_router(api_router, prefix=settings.API_PREFIX)

    @application.get("/")
    async def root():
        """Basic API information."""
        return {
            "message": settings.APP_NAME,
            "version": __version__,
            "status": "active",
            "endpoints": {
                "health": "/health",
                "send_otp": f"{settings.API_PREFIX}/auth/send-otp",
                "verify_otp": f"{settings.API_PREFIX}/auth/verify-otp",
                "docs": "/docs",
            },
        }

    @application.get("/health", response_model=HealthResponse)
    async def health_check(app_settings: Settings = Depends(get_app_settings)):
        return HealthResponse(
            status="ok",
            timestamp=application.state.clock.now(),
            email_configured=app_settings.email_configured,
        )

    return application


app = create_application()
