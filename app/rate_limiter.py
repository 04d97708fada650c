"""
Fixed-window rate limiting backed by Redis
Falls back to a per-process window when Redis cannot be reached
"""

import logging
import time
from threading import Lock
from typing import Optional

import redis
from fastapi import HTTPException, Request

from .config import REDIS_HOST, REDIS_PASSWORD, REDIS_PORT, REDIS_URL

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None
redis_unavailable_until = 0.0
REDIS_RETRY_SECONDS = 30

# {key: (count, window_reset_epoch)}
memory_windows: dict[str, tuple[int, int]] = {}
memory_lock = Lock()
MEMORY_CLEANUP_INTERVAL = 60
last_cleanup_time = 0


def get_redis_client() -> Optional[redis.Redis]:
    """
    Get or create the Redis client.
    Returns None while Redis is marked unavailable.
    """
    global redis_client, redis_unavailable_until

    if redis_client is not None:
        return redis_client
    if time.time() < redis_unavailable_until:
        return None

    try:
        if REDIS_URL:
            client = redis.from_url(
                REDIS_URL, decode_responses=True, socket_connect_timeout=5, socket_timeout=5
            )
        else:
            client = redis.Redis(
                host=REDIS_HOST,
                port=REDIS_PORT,
                password=REDIS_PASSWORD,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
        client.ping()
        logger.info("✅ Redis connected for rate limiting")
        redis_client = client
    except redis.RedisError as e:
        logger.warning(f"⚠️ Redis unavailable, using in-process rate limiting: {e}")
        redis_unavailable_until = time.time() + REDIS_RETRY_SECONDS
        return None

    return redis_client


def _hit_redis(client: redis.Redis, key: str, window_seconds: int) -> tuple[int, int]:
    pipe = client.pipeline()
    pipe.set(key, 0, ex=window_seconds, nx=True)
    pipe.incr(key)
    pipe.ttl(key)
    _, count, ttl = pipe.execute()
    return int(count), max(int(ttl), 0)


def cleanup_expired_windows(now: int) -> None:
    """Drop in-process windows that have already reset"""
    global last_cleanup_time

    if now - last_cleanup_time < MEMORY_CLEANUP_INTERVAL:
        return

    with memory_lock:
        expired_keys = [k for k, (_, reset_at) in memory_windows.items() if now >= reset_at]
        for k in expired_keys:
            del memory_windows[k]

    if expired_keys:
        logger.debug(f"🧹 Cleaned up {len(expired_keys)} expired rate limit windows")
    last_cleanup_time = now


def _hit_memory(key: str, window_seconds: int) -> tuple[int, int]:
    now = int(time.time())
    cleanup_expired_windows(now)
    with memory_lock:
        count, reset_at = memory_windows.get(key, (0, now + window_seconds))
        if now >= reset_at:
            count, reset_at = 0, now + window_seconds
        count += 1
        memory_windows[key] = (count, reset_at)
    return count, reset_at - now


def check_rate_limit(key: str, limit: int, window_seconds: int) -> tuple[bool, int, int]:
    """
    Count one hit against `key`.

    Returns:
        Tuple of (is_allowed, current_count, ttl_seconds)
    """
    global redis_client, redis_unavailable_until

    client = get_redis_client()
    if client is not None:
        try:
            count, ttl = _hit_redis(client, key, window_seconds)
            return count <= limit, count, ttl
        except redis.RedisError as e:
            logger.warning(f"⚠️ Redis rate limit call failed, falling back to memory: {e}")
            redis_client = None
            redis_unavailable_until = time.time() + REDIS_RETRY_SECONDS

    count, ttl = _hit_memory(key, window_seconds)
    return count <= limit, count, ttl


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def create_rate_limiter(limit: int, window_seconds: int, key_prefix: str = "rate_limit"):
    """
    Create a per-IP rate limiter dependency

    Example usage:
        verify_rate_limit = create_rate_limiter(limit=20, window_seconds=60, key_prefix="invitation_verify")

        @router.get("/verify")
        async def verify(token: str, _: None = Depends(verify_rate_limit)):
            ...
    """

    async def rate_limiter(request: Request):
        key = f"{key_prefix}:{get_client_ip(request)}"
        is_allowed, current_count, ttl = check_rate_limit(key, limit, window_seconds)

        if not is_allowed:
            logger.warning(f"🚫 Rate limit EXCEEDED for {key} - {current_count}/{limit}")
            raise HTTPException(
                status_code=429,
                detail=f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                headers={"Retry-After": str(ttl)},
            )

        request.state.rate_limit_remaining = max(limit - current_count, 0)

    return rate_limiter
