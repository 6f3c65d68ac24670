"""Periodic removal of expired OTP challenges.

Expiry is already enforced when a code is verified; the sweep only keeps
abandoned challenges and idle rate-limit windows from piling up in memory.
"""
import asyncio
import logging
from typing import Optional

from etherworld_auth.core.rate_limiter import InMemoryRateLimiter, RateLimiter
from etherworld_auth.services.otp_service import OTPService

logger = logging.getLogger(__name__)


class OTPSweeper:
    def __init__(
        self,
        otp_service: OTPService,
        interval_seconds: float = 60,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        self.otp_service = otp_service
        self.interval_seconds = interval_seconds
        self.rate_limiter = rate_limiter
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="otp-sweeper")
        logger.info(f"OTP sweeper started (every {self.interval_seconds}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("OTP sweeper stopped")

    async def run_once(self) -> int:
        """One sweep pass. Errors are logged and the loop keeps going."""
        try:
            removed = await self.otp_service.sweep_expired()
            if isinstance(self.rate_limiter, InMemoryRateLimiter):
                self.rate_limiter.prune()
            return removed
        except Exception as e:
            logger.exception(f"OTP sweep failed: {e}")
            return 0

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.run_once()
