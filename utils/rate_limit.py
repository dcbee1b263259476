"""Rate limiting utilities using throttled-py"""
from datetime import timedelta

from fastapi import Request
from throttled import Throttled, RateLimiterType, store, rate_limiter

from core.config import logger, RATE_LIMIT_ENABLED, REDIS_URL
from core.errors import TooManyRequestsError

# Redis for production (shared between workers), MemoryStore for development
if REDIS_URL:
    storage = store.RedisStore(server=REDIS_URL)
    logger.info("[rate_limit] Using Redis for rate limiting")
else:
    storage = store.MemoryStore()
    logger.warning("[rate_limit] REDIS_URL not set - using in-memory storage (not suitable for production with multiple workers)")


def _fixed_window(period: timedelta, limit: int) -> Throttled:
    return Throttled(
        using=RateLimiterType.FIXED_WINDOW.value,
        quota=rate_limiter.per_duration(period, limit=limit),
        store=storage,
    )


# Register limiter: 5 accounts per IP per hour
register_throttle = _fixed_window(timedelta(hours=1), 5)

# Login attempt limiter: 10 attempts per IP per 15 minutes (brute force protection)
login_throttle = _fixed_window(timedelta(minutes=15), 10)

# Public scan tracking (AR viewer): 120 requests per IP per minute
scan_throttle = _fixed_window(timedelta(minutes=1), 120)


def get_client_ip(request: Request) -> str:
    """Extract client IP from request, handling proxies."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else "unknown"


def check_rate_limit(throttle: Throttled, key: str) -> bool:
    """
    Consume one request from the quota of `key`.
    Returns False when the limit is exceeded. Fails open if the store is unavailable.
    """
    try:
        result = throttle.limit(key, cost=1)
    except Exception as ex:
        logger.warning(f"[rate_limit] Rate limit check failed for {key}: {ex}")
        return True
    return not result.limited


def rate_limited(throttle: Throttled, scope: str):
    """FastAPI dependency rejecting requests over the per-IP quota with 429."""

    async def _dependency(request: Request) -> None:
        if not RATE_LIMIT_ENABLED:
            return
        ip = get_client_ip(request)
        if not check_rate_limit(throttle, f"{scope}:{ip}"):
            logger.warning(f"[rate_limit] {scope} limit exceeded for IP {ip}")
            raise TooManyRequestsError()

    return _dependency
