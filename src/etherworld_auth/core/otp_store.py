"""
OTP Challenge Storage
=====================

Storage backends for outstanding OTP challenges, keyed by normalized email:
- In-memory dictionary (single instance, default)
- Redis (shared across instances, TTL-based expiry)

Backends only store and fetch records. The lifecycle rules (expiry,
attempt budget, overwrite on re-issue) live in ``OTPService``.

Every write that depends on what was read first (counting a failed attempt,
removing a challenge) is conditional on the stored record still being the
challenge the caller read. On Redis these run as WATCH/MULTI transactions, so
instances sharing the store cannot lose an attempt or consume a code twice.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime
from typing import Dict, Optional

import redis.asyncio as aioredis

from etherworld_auth.models.otp import OTPRecord

logger = logging.getLogger(__name__)

OTP_KEY_PREFIX = "otp:code"


# ============================================================================
# Store Abstract Base
# ============================================================================

class OTPStore(ABC):
    """Abstract base class for OTP challenge stores."""

    @abstractmethod
    async def get(self, email: str) -> Optional[OTPRecord]:
        """Get the live record for an email."""
        pass

    @abstractmethod
    async def set(self, record: OTPRecord) -> None:
        """Store a freshly issued record, replacing any previous one for the same email."""
        pass

    @abstractmethod
    async def increment_attempts(self, record: OTPRecord, max_attempts: int) -> Optional[int]:
        """
        Count one failed attempt against the challenge ``record`` was read from.

        Returns the new attempt count, or None when the stored challenge is
        gone, was re-issued, or has already spent ``max_attempts``. Never
        recreates a record and never extends its lifetime.
        """
        pass

    @abstractmethod
    async def discard(self, record: OTPRecord) -> bool:
        """Delete the stored challenge if it is still the one ``record`` was read from."""
        pass

    @abstractmethod
    async def expired_emails(self, now: datetime) -> list:
        """Emails whose records have passed their expiry at ``now``."""
        pass


# ============================================================================
# In-Memory Store
# ============================================================================

class InMemoryOTPStore(OTPStore):
    """Process-local store. Records do not survive a restart.

    Methods never await between reading and writing, so each one is atomic
    on the event loop.
    """

    def __init__(self):
        self.records: Dict[str, OTPRecord] = {}

    async def get(self, email: str) -> Optional[OTPRecord]:
        record = self.records.get(email)
        # hand out a copy so callers never mutate the stored record
        return replace(record) if record is not None else None

    async def set(self, record: OTPRecord) -> None:
        self.records[record.email] = replace(record)

    async def increment_attempts(self, record: OTPRecord, max_attempts: int) -> Optional[int]:
        stored = self.records.get(record.email)
        if stored is None or not stored.same_challenge(record) or stored.is_exhausted(max_attempts):
            return None
        stored.attempts += 1
        return stored.attempts

    async def discard(self, record: OTPRecord) -> bool:
        stored = self.records.get(record.email)
        if stored is None or not stored.same_challenge(record):
            return False
        del self.records[record.email]
        return True

    async def expired_emails(self, now: datetime) -> list:
        return [email for email, record in self.records.items() if record.is_expired(now)]

    def __len__(self) -> int:
        return len(self.records)


# ============================================================================
# Redis Store
# ============================================================================

class RedisOTPStore(OTPStore):
    """Redis-backed store.

    Each record is a JSON string with a Redis TTL matching the code lifetime,
    so Redis evicts expired challenges on its own and the periodic sweep has
    nothing to scan.
    """

    def __init__(self, redis: aioredis.Redis, ttl_seconds: int):
        self.redis = redis
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def _key(email: str) -> str:
        return f"{OTP_KEY_PREFIX}:{email}"

    @staticmethod
    def _decode(email: str, value) -> Optional[OTPRecord]:
        if not value:
            return None
        try:
            return OTPRecord.from_dict(json.loads(value))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Unreadable OTP record for {email}: {e}")
            return None

    async def get(self, email: str) -> Optional[OTPRecord]:
        value = await self.redis.get(self._key(email))
        record = self._decode(email, value)
        if value and record is None:
            await self.redis.delete(self._key(email))
        return record

    async def set(self, record: OTPRecord) -> None:
        value = json.dumps(record.to_dict())
        await self.redis.setex(self._key(record.email), self.ttl_seconds, value)

    async def increment_attempts(self, record: OTPRecord, max_attempts: int) -> Optional[int]:
        key = self._key(record.email)

        async def bump(pipe) -> Optional[int]:
            stored = self._decode(record.email, await pipe.get(key))
            if stored is None or not stored.same_challenge(record) or stored.is_exhausted(max_attempts):
                await pipe.unwatch()
                return None
            stored.attempts += 1
            pipe.multi()
            # XX: a key that vanished since the read is never recreated without a TTL
            pipe.set(key, json.dumps(stored.to_dict()), keepttl=True, xx=True)
            return stored.attempts

        return await self.redis.transaction(bump, key, value_from_callable=True)

    async def discard(self, record: OTPRecord) -> bool:
        key = self._key(record.email)

        async def drop(pipe) -> bool:
            stored = self._decode(record.email, await pipe.get(key))
            if stored is None or not stored.same_challenge(record):
                await pipe.unwatch()
                return False
            pipe.multi()
            pipe.delete(key)
            return True

        return await self.redis.transaction(drop, key, value_from_callable=True)

    async def expired_emails(self, now: datetime) -> list:
        return []
