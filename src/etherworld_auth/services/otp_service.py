"""OTP generation and verification service."""
from datetime import timedelta
import logging

from etherworld_auth.core.clock import Clock, system_clock
from etherworld_auth.core.locks import KeyedLock
from etherworld_auth.core.otp_store import OTPStore
from etherworld_auth.core.security import codes_match, generate_otp, normalize_email
from etherworld_auth.models.enums import OTPVerifyStatus
from etherworld_auth.models.otp import OTPRecord

logger = logging.getLogger(__name__)


class OTPService:
    """Handle the lifecycle of email OTP challenges.

    One challenge per normalized email. Within a process every
    read-modify-write on a challenge runs under that email's lock; across
    instances the store only applies a write if the challenge is unchanged
    since it was read, and a refused write sends `verify` back to re-read.
    Either way concurrent verifications cannot share an attempt.
    """

    def __init__(
        self,
        store: OTPStore,
        clock: Clock = system_clock,
        ttl_seconds: int = 600,
        max_attempts: int = 3,
    ):
        self.store = store
        self.clock = clock
        self.ttl = timedelta(seconds=ttl_seconds)
        self.max_attempts = max_attempts
        self._locks = KeyedLock()

    async def issue(self, email: str) -> str:
        """Create a fresh challenge for `email`, replacing any live one. Returns the code."""
        key = normalize_email(email)
        code = generate_otp()
        record = OTPRecord(
            email=key,
            code=code,
            expires_at=self.clock.now() + self.ttl,
            attempts=0,
        )
        async with self._locks.hold(key):
            await self.store.set(record)

        logger.info(f"OTP issued for {key}, expires at {record.expires_at.isoformat()}")
        return code

    async def verify(self, email: str, code: str) -> OTPVerifyStatus:
        """Check `code` against the live challenge for `email`."""
        key = normalize_email(email)
        async with self._locks.hold(key):
            while True:
                record = await self.store.get(key)
                if record is None:
                    return OTPVerifyStatus.NO_ACTIVE_CHALLENGE

                if record.is_expired(self.clock.now()):
                    await self.store.discard(record)
                    logger.info(f"OTP for {key} expired before verification")
                    return OTPVerifyStatus.EXPIRED

                if record.is_exhausted(self.max_attempts):
                    await self.store.discard(record)
                    logger.warning(f"OTP for {key} discarded after {record.attempts} failed attempts")
                    return OTPVerifyStatus.ATTEMPTS_EXHAUSTED

                if not codes_match(code, record.code):
                    attempts = await self.store.increment_attempts(record, self.max_attempts)
                    if attempts is None:
                        # changed by another instance since the read
                        continue
                    logger.info(f"Invalid OTP for {key} ({attempts}/{self.max_attempts})")
                    return OTPVerifyStatus.INVALID_CODE

                if await self.store.discard(record):
                    return OTPVerifyStatus.SUCCESS

    async def sweep_expired(self) -> int:
        """Delete every challenge past its expiry. Returns how many were removed."""
        now = self.clock.now()
        removed = 0
        for key in await self.store.expired_emails(now):
            async with self._locks.hold(key):
                # re-read: the code may have been re-issued since the scan
                record = await self.store.get(key)
                if record is not None and record.is_expired(now) and await self.store.discard(record):
                    removed += 1
        if removed:
            logger.debug(f"Swept {removed} expired OTP challenges")
        return removed
