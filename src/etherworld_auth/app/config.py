"""Application configuration using Pydantic Settings (environment first, .env second)."""
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service settings.

    Every option has a development default so the service boots with an empty
    environment; email falls back to log-only delivery and both stores fall
    back to process memory.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = Field("EtherWorld OTP Backend")
    ENVIRONMENT: str = Field("development")
    DEBUG: bool = Field(False)
    LOG_LEVEL: str = Field("INFO")
    PORT: int = Field(3000)
    API_PREFIX: str = Field("")
    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    # Email transport
    EMAIL_SERVICE: Optional[str] = Field(None)
    EMAIL_USER: Optional[str] = Field(None)
    EMAIL_PASSWORD: Optional[str] = Field(None)
    EMAIL_FROM: Optional[str] = Field(None)
    SMTP_HOST: Optional[str] = Field(None)
    SMTP_PORT: int = Field(587)
    SMTP_TIMEOUT_SECS: int = Field(15)
    RESEND_API_KEY: Optional[str] = Field(None)
    EMAIL_MAX_RETRIES: int = Field(3)

    # OTP hardening and shared store
    OTP_SECRET: Optional[str] = Field(None)
    REDIS_URL: Optional[str] = Field(None)

    # OTP lifecycle
    OTP_TTL_SECS: int = Field(600)
    OTP_MAX_ATTEMPTS: int = Field(3)
    OTP_SWEEP_INTERVAL_SECS: int = Field(60)

    # Rate limiting
    OTP_SEND_LIMIT: int = Field(5)
    OTP_SEND_WINDOW_SECS: int = Field(60)

    # Session
    SESSION_TTL_DAYS: int = Field(30)

    @computed_field
    @property
    def email_mode(self) -> str:
        """Which transport the service will use: resend, gmail, smtp or log."""
        service = (self.EMAIL_SERVICE or "").strip().lower()
        if service == "resend" and self.RESEND_API_KEY:
            return "resend"
        if service == "gmail" and self.EMAIL_USER:
            return "gmail"
        if self.SMTP_HOST:
            return "smtp"
        return "log"

    @computed_field
    @property
    def email_configured(self) -> bool:
        return self.email_mode != "log"

    @computed_field
    @property
    def email_sender(self) -> str:
        return self.EMAIL_FROM or self.EMAIL_USER or "noreply@etherworld.co"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() in ("development", "dev", "local", "test")


@lru_cache
def get_settings() -> Settings:
    return Settings()
