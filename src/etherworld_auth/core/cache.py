"""
Shared Store Wiring
===================

Chooses where OTP challenges and rate-limit windows live:
- No ``REDIS_URL``: process memory (single instance, lost on restart)
- ``REDIS_URL`` set: Redis, shared by every instance behind the same URL
"""

import logging
from typing import Optional

import redis.asyncio as aioredis

from etherworld_auth.app.config import Settings
from etherworld_auth.core.clock import Clock, system_clock
from etherworld_auth.core.otp_store import InMemoryOTPStore, OTPStore, RedisOTPStore
from etherworld_auth.core.rate_limiter import InMemoryRateLimiter, RateLimiter, RedisRateLimiter

logger = logging.getLogger(__name__)


async def init_redis(redis_url: Optional[str]) -> Optional[aioredis.Redis]:
    """Connect to Redis and verify the connection. Returns None when unconfigured."""
    if not redis_url:
        logger.info("REDIS_URL not set, using in-memory OTP and rate-limit stores")
        return None

    client = aioredis.from_url(redis_url, encoding="utf8", decode_responses=True)
    try:
        await client.ping()
    except Exception as e:
        logger.error(f"❌ Failed to connect to Redis: {str(e)}")
        await client.aclose()
        raise
    logger.info("✅ Redis store connected")
    return client


async def close_redis(client: Optional[aioredis.Redis]) -> None:
    if client is None:
        return
    try:
        await client.aclose()
        logger.info("✅ Redis store disconnected")
    except Exception as e:
        logger.error(f"❌ Failed to disconnect Redis: {str(e)}")


def create_otp_store(settings: Settings, redis: Optional[aioredis.Redis] = None) -> OTPStore:
    if redis is not None:
        return RedisOTPStore(redis, ttl_seconds=settings.OTP_TTL_SECS)
    return InMemoryOTPStore()


def create_rate_limiter(
    settings: Settings,
    redis: Optional[aioredis.Redis] = None,
    clock: Clock = system_clock,
) -> RateLimiter:
    if redis is not None:
        return RedisRateLimiter(
            redis,
            limit=settings.OTP_SEND_LIMIT,
            window_seconds=settings.OTP_SEND_WINDOW_SECS,
            clock=clock,
        )
    return InMemoryRateLimiter(
        limit=settings.OTP_SEND_LIMIT,
        window_seconds=settings.OTP_SEND_WINDOW_SECS,
        clock=clock,
    )
