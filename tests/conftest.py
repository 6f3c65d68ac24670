"""
Shared test fixtures
"""
from datetime import datetime, timedelta, timezone

import pytest

from etherworld_auth.app.config import Settings
from etherworld_auth.services.messaging import EmailTransport


class FakeClock:
    """Clock that only moves when a test moves it."""

    def __init__(self, start=None):
        self.current = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def now(self):
        return self.current

    def advance(self, **kwargs):
        self.current += timedelta(**kwargs)


class RecordingTransport(EmailTransport):
    """Keeps every message instead of sending it."""

    name = "recording"

    def __init__(self, fail_times=0):
        super().__init__("noreply@etherworld.co")
        self.sent = []
        self.fail_times = fail_times
        self.calls = 0

    def send(self, to, subject, html, code=None):
        self.calls += 1
        if self.calls <= self.fail_times:
            raise ConnectionError("smtp relay unavailable")
        self.sent.append({"to": to, "subject": subject, "html": html, "code": code})
        return f"msg-{len(self.sent)}"

    def last_code(self):
        return self.sent[-1]["code"]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        ENVIRONMENT="test",
        LOG_LEVEL="WARNING",
        REDIS_URL=None,
        EMAIL_SERVICE=None,
        EMAIL_USER=None,
        SMTP_HOST=None,
        RESEND_API_KEY=None,
        EMAIL_MAX_RETRIES=1,
        OTP_SWEEP_INTERVAL_SECS=3600,
    )


@pytest.fixture
def make_transport():
    return RecordingTransport
