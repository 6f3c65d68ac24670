# scripts/dev/check_redis.py
"""Check that the Redis behind REDIS_URL is reachable before enabling the shared store."""
import asyncio
import sys

from etherworld_auth.app.config import get_settings

LOCAL_REDIS_URLS = [
    "redis://127.0.0.1:6379/0",   # prefer explicit IPv4
    "redis://localhost:6379/0",   # fallback
]


async def try_async_redis(url, max_attempts=3, backoff=1.0):
    import redis.asyncio as aioredis
    for attempt in range(1, max_attempts + 1):
        try:
            print(f"[async] Attempt {attempt} -> connecting to {url}")
            r = aioredis.from_url(url, socket_connect_timeout=3, decode_responses=True)
            await r.ping()
            keys = [key async for key in r.scan_iter(match="otp:*", count=100)]
            print(f"[async] Connected OK to {url} ({len(keys)} otp:* keys)")
            await r.aclose()
            return True
        except Exception as e:
            print(f"[async] connection failed to {url}: {type(e).__name__}: {e}")
            if attempt < max_attempts:
                await asyncio.sleep(backoff)
                backoff *= 2
    return False


async def main():
    configured = get_settings().REDIS_URL
    urls = [configured] if configured else LOCAL_REDIS_URLS
    if not configured:
        print("REDIS_URL is not set; the service will use in-memory stores. Probing local Redis instead.")

    for url in urls:
        if await try_async_redis(url):
            return
    print("All connection attempts failed. See the error messages above.")
    print("If you are running Redis in Docker, verify port mapping and firewall settings.")
    sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
