"""
Per-IP rate limiting for the API.

Fixed-window counters kept in Redis when REDIS_URL is set, so every worker
shares the same budget; otherwise counters live in this process.

Limits:
- every /api route: 100 requests per 15 minutes per IP
- /api/auth routes: 10 requests per minute per IP, on top of the above
"""

import logging
import threading
import time
from typing import Dict, Optional, Tuple

import redis
from fastapi import Request
from fastapi.responses import JSONResponse

from we3vision.core.config import settings
from we3vision.core.exceptions import RateLimitError

logger = logging.getLogger(__name__)

API_LIMIT_MESSAGE = "Too many requests, please try again later."
AUTH_LIMIT_MESSAGE = "Too many login attempts, please try again later."


class RateLimiter:
    """
    Fixed-window request counter.

    Redis errors fail open: a request is never rejected because the
    counter store is unreachable.
    """

    def __init__(self, redis_url: Optional[str] = None, clock=time.monotonic):
        self.redis_client = redis.Redis.from_url(redis_url, decode_responses=True) if redis_url else None
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def check_rate_limit(self, key: str, max_requests: int, window_seconds: int, error_message: str) -> None:
        """
        Count one request against `key`.

        Raises:
            RateLimitError: 429 once more than `max_requests` arrive in the window
        """
        if self.redis_client is not None:
            retry_after = self._hit_redis(key, max_requests, window_seconds)
        else:
            retry_after = self._hit_memory(key, max_requests, window_seconds)

        if retry_after is not None:
            logger.warning(f"Rate limit exceeded for {key}")
            raise RateLimitError(error_message, retry_after=retry_after)

    def _hit_redis(self, key: str, max_requests: int, window_seconds: int) -> Optional[int]:
        try:
            count = self.redis_client.incr(key)
            if count == 1:
                self.redis_client.expire(key, window_seconds)
            if count > max_requests:
                ttl = self.redis_client.ttl(key)
                return ttl if ttl and ttl > 0 else window_seconds
        except redis.RedisError as e:
            logger.error(f"Redis rate limiter error: {e}")
        return None

    def _hit_memory(self, key: str, max_requests: int, window_seconds: int) -> Optional[int]:
        now = self._clock()
        with self._lock:
            started, count = self._windows.get(key, (now, 0))
            if now - started >= window_seconds:
                started, count = now, 0
            count += 1
            self._windows[key] = (started, count)
        if count > max_requests:
            return max(1, int(started + window_seconds - now))
        return None

    def reset(self) -> None:
        """Forget every counter (tests and manual intervention)."""
        with self._lock:
            self._windows.clear()
        if self.redis_client is not None:
            try:
                for key in self.redis_client.scan_iter("ratelimit:*"):
                    self.redis_client.delete(key)
            except redis.RedisError as e:
                logger.error(f"Redis reset error: {e}")


rate_limiter = RateLimiter(settings.REDIS_URL)


def get_client_ip(request: Request) -> str:
    """
    Client address, honouring the first X-Forwarded-For hop when behind a proxy.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def check_ip_rate_limit(ip_address: str, path: str) -> None:
    """
    Apply the API-wide limit and, for auth routes, the stricter auth limit.

    Raises:
        RateLimitError: 429 if either limit is exceeded
    """
    rate_limiter.check_rate_limit(
        key=f"ratelimit:api:{ip_address}",
        max_requests=settings.RATE_LIMIT_API_REQUESTS,
        window_seconds=settings.RATE_LIMIT_API_WINDOW_SECONDS,
        error_message=API_LIMIT_MESSAGE,
    )
    auth_prefix = f"{settings.API_PREFIX}/auth"
    if path == auth_prefix or path.startswith(auth_prefix + "/"):
        rate_limiter.check_rate_limit(
            key=f"ratelimit:auth:{ip_address}",
            max_requests=settings.RATE_LIMIT_AUTH_REQUESTS,
            window_seconds=settings.RATE_LIMIT_AUTH_WINDOW_SECONDS,
            error_message=AUTH_LIMIT_MESSAGE,
        )


async def limit_requests(request: Request, call_next):
    """HTTP middleware throttling everything under API_PREFIX."""
    path = request.url.path
    if settings.RATE_LIMIT_ENABLED and path.startswith(settings.API_PREFIX + "/"):
        try:
            check_ip_rate_limit(get_client_ip(request), path)
        except RateLimitError as exc:
            # Middleware sits outside the exception handlers, so render the envelope here
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_dict(),
                headers={"Retry-After": str(exc.retry_after)},
            )
    return await call_next(request)
