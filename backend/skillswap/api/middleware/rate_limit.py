"""
Rate limiting using in-memory sliding windows. Replace with a shared store for multi-instance.
Auth: attempts per window per IP. API: requests per window per user.
"""
import time
from collections import defaultdict, deque

from fastapi import HTTPException, Request, status

from skillswap.config import get_settings
from skillswap.utils.logger import get_logger

logger = get_logger(__name__)

# Distinct keys kept before stale ones are evicted.
_MAX_KEYS = 10_000


class SlidingWindowLimiter:
    def __init__(self, name: str):
        self.name = name
        self._hits: dict[str, deque[float]] = defaultdict(deque)

    def _evict_stale_keys(self, cutoff: float) -> None:
        if len(self._hits) <= _MAX_KEYS:
            return
        for key in [k for k, ts in self._hits.items() if not ts or ts[-1] < cutoff]:
            del self._hits[key]

    def hit(self, key: str, limit: int, window_seconds: float) -> bool:
        """Record a hit. Returns False when the key is over its limit."""
        now = time.monotonic()
        cutoff = now - window_seconds
        hits = self._hits[key]
        while hits and hits[0] < cutoff:
            hits.popleft()
        if len(hits) >= limit:
            return False
        hits.append(now)
        self._evict_stale_keys(cutoff)
        return True

    def reset(self) -> None:
        self._hits.clear()


auth_limiter = SlidingWindowLimiter("auth")
api_limiter = SlidingWindowLimiter("api")


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def check_auth_rate_limit(request: Request) -> None:
    """Enforce auth rate limit per client IP. Call before login/register."""
    settings = get_settings()
    key = _client_ip(request)
    if not auth_limiter.hit(key, settings.rate_limit_auth_requests, settings.rate_limit_auth_window_minutes * 60):
        logger.warning("Auth rate limit exceeded", extra={"client": key[:20]})
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many attempts. Try again later.",
        )


def check_api_rate_limit(request: Request, user_id: str | None) -> None:
    """Enforce API rate limit per user (or per IP if unauthenticated)."""
    settings = get_settings()
    key = f"user:{user_id}" if user_id else _client_ip(request)
    if not api_limiter.hit(key, settings.rate_limit_api_requests, float(settings.rate_limit_api_window_seconds)):
        logger.warning("API rate limit exceeded", extra={"key": key[:30]})
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded. Try again later.",
        )
