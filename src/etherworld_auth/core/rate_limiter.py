# core/rate_limiter.py
import logging
import math
import uuid
from abc import ABC, abstractmethod
from collections import deque
from typing import Deque, Dict, Optional, Tuple

import redis.asyncio as aioredis

from etherworld_auth.core.clock import Clock, system_clock

logger = logging.getLogger(__name__)


def _send_key(identifier: str) -> str:
    return f"otp:send:{identifier}"


class RateLimiter(ABC):
    """Sliding-window limit on OTP sends per email.

    Rejected calls are not recorded, so a caller hammering the endpoint is
    let through again as soon as the oldest accepted send leaves the window.
    """

    def __init__(self, limit: int, window_seconds: int, clock: Clock = system_clock):
        self.limit = limit
        self.window_seconds = window_seconds
        self.clock = clock

    @abstractmethod
    async def check(self, identifier: str) -> Tuple[bool, Optional[int]]:
        """
        Record a send for `identifier` if the window allows it.
        Returns (allowed, retry_after_seconds_or_None).
        """

    async def allow(self, identifier: str) -> bool:
        allowed, _ = await self.check(identifier)
        return allowed

    def _retry_after(self, oldest: float, now: float) -> int:
        return max(1, math.ceil(self.window_seconds - (now - oldest)))


class InMemoryRateLimiter(RateLimiter):
    """Process-local windows. Not shared between instances, lost on restart."""

    def __init__(self, limit: int, window_seconds: int, clock: Clock = system_clock):
        super().__init__(limit, window_seconds, clock)
        self.windows: Dict[str, Deque[float]] = {}

    async def check(self, identifier: str) -> Tuple[bool, Optional[int]]:
        now = self.clock.now().timestamp()
        window = self.windows.setdefault(identifier, deque())
        while window and now - window[0] >= self.window_seconds:
            window.popleft()

        if len(window) >= self.limit:
            return False, self._retry_after(window[0], now)

        window.append(now)
        return True, None

    def prune(self) -> int:
        """Drop identifiers whose windows have fully elapsed."""
        now = self.clock.now().timestamp()
        stale = [
            key for key, window in self.windows.items()
            if not window or now - window[-1] >= self.window_seconds
        ]
        for key in stale:
            del self.windows[key]
        return len(stale)


# Trim, count, then either report the oldest entry or record this send.
_SLIDING_WINDOW_LUA = """
local key = KEYS[1]
local now = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local limit = tonumber(ARGV[3])
redis.call('ZREMRANGEBYSCORE', key, '-inf', now - window)
local count = redis.call('ZCARD', key)
if count >= limit then
  local oldest = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
  return {0, oldest[2]}
end
redis.call('ZADD', key, now, ARGV[4])
redis.call('PEXPIRE', key, window)
return {1, ''}
"""


class RedisRateLimiter(RateLimiter):
    """Windows kept in Redis sorted sets so every instance sees the same counts."""

    def __init__(
        self,
        redis: aioredis.Redis,
        limit: int,
        window_seconds: int,
        clock: Clock = system_clock,
    ):
        super().__init__(limit, window_seconds, clock)
        self.redis = redis
        self._script = redis.register_script(_SLIDING_WINDOW_LUA)

    async def check(self, identifier: str) -> Tuple[bool, Optional[int]]:
        now_ms = int(self.clock.now().timestamp() * 1000)
        allowed, oldest = await self._script(
            keys=[_send_key(identifier)],
            args=[now_ms, self.window_seconds * 1000, self.limit, f"{now_ms}-{uuid.uuid4().hex}"],
        )
        if int(allowed):
            return True, None

        retry_after = self._retry_after(float(oldest) / 1000, now_ms / 1000)
        logger.info(f"OTP send limit reached for {identifier}, retry in {retry_after}s")
        return False, retry_after
