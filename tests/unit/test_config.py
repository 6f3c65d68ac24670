import pytest

from etherworld_auth.app.config import Settings


def _settings(**overrides):
    fields = {
        "EMAIL_SERVICE": None,
        "EMAIL_USER": None,
        "EMAIL_FROM": None,
        "SMTP_HOST": None,
        "RESEND_API_KEY": None,
        "REDIS_URL": None,
    }
    fields.update(overrides)
    return Settings(_env_file=None, **fields)


@pytest.mark.unit
def test_defaults_match_otp_policy():
    settings = _settings()
    assert settings.OTP_TTL_SECS == 600
    assert settings.OTP_MAX_ATTEMPTS == 3
    assert settings.OTP_SEND_LIMIT == 5
    assert settings.OTP_SEND_WINDOW_SECS == 60
    assert settings.OTP_SWEEP_INTERVAL_SECS == 60
    assert settings.SESSION_TTL_DAYS == 30


@pytest.mark.unit
@pytest.mark.parametrize(
    "overrides, mode",
    [
        ({}, "log"),
        ({"EMAIL_SERVICE": "resend"}, "log"),
        ({"EMAIL_SERVICE": "resend", "RESEND_API_KEY": "re_1"}, "resend"),
        ({"EMAIL_SERVICE": "Gmail", "EMAIL_USER": "news@gmail.com"}, "gmail"),
        ({"SMTP_HOST": "mail.example.org"}, "smtp"),
    ],
)
def test_email_mode(overrides, mode):
    settings = _settings(**overrides)
    assert settings.email_mode == mode
    assert settings.email_configured is (mode != "log")


@pytest.mark.unit
def test_sender_fallbacks():
    assert _settings().email_sender == "noreply@etherworld.co"
    assert _settings(EMAIL_USER="news@gmail.com").email_sender == "news@gmail.com"
    assert _settings(EMAIL_USER="news@gmail.com", EMAIL_FROM="otp@etherworld.co").email_sender == "otp@etherworld.co"


@pytest.mark.unit
def test_reads_environment(monkeypatch):
    monkeypatch.setenv("OTP_SEND_LIMIT", "10")
    monkeypatch.setenv("smtp_host", "mail.example.org")
    settings = Settings(_env_file=None)
    assert settings.OTP_SEND_LIMIT == 10
    assert settings.email_mode == "smtp"
