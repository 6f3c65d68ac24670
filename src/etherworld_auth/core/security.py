"""Security utilities for OTP issuance and session tokens.

Session tokens are base64-encoded JSON, readable and forgeable by anyone who
holds one. They carry no signature. Replace ``create_session_token`` and
``decode_session_token`` together with a signed format before trusting tokens
for authorization anywhere.
"""
from datetime import datetime, timedelta
from typing import Any, Dict, Optional
import base64
import binascii
import hmac
import json
import secrets


OTP_MIN = 100000
OTP_MAX = 999999


def normalize_email(email: str) -> str:
    """Key used for every per-email lookup."""
    return email.strip().lower()


def generate_otp() -> str:
    """Generate a random six digit OTP (100000-999999)."""
    return str(secrets.randbelow(OTP_MAX - OTP_MIN + 1) + OTP_MIN)


def codes_match(submitted: str, stored: str) -> bool:
    """Exact comparison without early exit on the first differing digit."""
    return hmac.compare_digest(submitted.encode("utf-8"), stored.encode("utf-8"))


def derive_user_id(email: str) -> str:
    """Stable user id: the first 16 characters of the base64 encoded email."""
    return base64.b64encode(normalize_email(email).encode("utf-8")).decode("ascii")[:16]


def display_name_for(email: str) -> str:
    return email.split("@")[0]


def _to_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def create_session_token(email: str, issued_at: datetime, expires_at: datetime) -> str:
    """Create the opaque session token handed to the client after verification."""
    payload = {
        "email": normalize_email(email),
        "iat": _to_millis(issued_at),
        "exp": _to_millis(expires_at),
    }
    raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def decode_session_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode a session token for diagnostics and tests. Returns None for anything that is not one.

    The service never calls this. The payload is unsigned, so whatever it
    returns must not be used to decide who a caller is.
    """
    try:
        payload = json.loads(base64.b64decode(token, validate=True))
    except (binascii.Error, ValueError):
        return None
    if not isinstance(payload, dict) or not {"email", "iat", "exp"} <= payload.keys():
        return None
    return payload


def session_expiry(issued_at: datetime, ttl_days: int) -> datetime:
    return issued_at + timedelta(days=ttl_days)
