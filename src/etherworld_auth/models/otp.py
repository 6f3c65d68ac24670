"""OTP challenge record."""
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict


@dataclass
class OTPRecord:
    """One outstanding verification challenge for a normalized email."""

    email: str
    code: str
    expires_at: datetime
    attempts: int = 0

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def is_exhausted(self, max_attempts: int) -> bool:
        return self.attempts >= max_attempts

    def same_challenge(self, other: "OTPRecord") -> bool:
        """True when both describe the same issuance, whatever their attempt counts."""
        return self.code == other.code and self.expires_at == other.expires_at

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["expires_at"] = self.expires_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OTPRecord":
        return cls(
            email=data["email"],
            code=str(data["code"]),
            expires_at=datetime.fromisoformat(data["expires_at"]),
            attempts=int(data.get("attempts", 0)),
        )
