"""
Redis-based rate limiting for the authentication endpoints.

Login and registration share one fixed-window counter per client IP, so a
single source cannot brute force credentials or mass-create accounts.
"""

import logging
from typing import Optional

import redis
from fastapi import HTTPException, Request, status

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Fixed-window request counter kept in Redis.

    The first request of a window creates the key with the window as its
    expiry; later requests increment it until the limit is reached.
    """

    def __init__(self, client: Optional[redis.Redis] = None, url: Optional[str] = None):
        if client is None:
            client = redis.Redis.from_url(url or "redis://localhost:6379/0", decode_responses=True)
        self.redis_client = client

    def check_rate_limit(
        self,
        key: str,
        max_requests: int,
        window_seconds: int,
        error_message: str = "Rate limit exceeded"
    ) -> None:
        """
        Check if a request is within rate limits.

        Args:
            key: Unique identifier for this rate limit (e.g., "auth:203.0.113.7")
            max_requests: Maximum number of requests allowed per window
            window_seconds: Window length in seconds
            error_message: Message prefix used in the 429 response

        Raises:
            HTTPException: 429 Too Many Requests if rate limit exceeded
        """
        try:
            current_count = self.redis_client.get(key)

            if current_count is None:
                # First request of the window
                self.redis_client.setex(key, window_seconds, 1)
                return

            if int(current_count) >= max_requests:
                ttl = self.redis_client.ttl(key)
                logger.warning(f"Rate limit exceeded for {key}")
                raise HTTPException(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    detail=f"{error_message}. Try again in {ttl} seconds.",
                    headers={"Retry-After": str(max(ttl, 0))},
                )
            self.redis_client.incr(key)

        except redis.RedisError as e:
            # Redis down: let the request through
            logger.error(f"Redis rate limiter error: {e}")

    def reset_limit(self, key: str) -> None:
        """Forget the counter for a key."""
        try:
            self.redis_client.delete(key)
        except redis.RedisError as e:
            logger.error(f"Redis reset error: {e}")


def build_rate_limiter(settings) -> RateLimiter:
    return RateLimiter(url=settings.REDIS_URL)


def get_client_ip(request: Request) -> str:
    """
    Extract the client's IP address from the request.

    Handles X-Forwarded-For header for proxied requests.
    """
    # X-Forwarded-For can contain multiple IPs, the first is the client
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    return request.client.host if request.client else "unknown"
