"""
Rate limiting for SmartStore Backend
Sliding window kept in memory, one timestamp queue per identifier
"""
import time
from collections import defaultdict, deque
from typing import Deque, Dict, Tuple

from fastapi import Request, HTTPException, status

from smartstore.core.config import settings


class RateLimiter:
    """
    In-memory sliding window limiter.

    State lives in the process; with several API instances each one keeps its own window.
    """

    def __init__(self, cleanup_interval: int = 60):
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._last_cleanup = time.time()
        self._cleanup_interval = cleanup_interval

    @staticmethod
    def _expire(hits: Deque[float], cutoff: float) -> None:
        while hits and hits[0] <= cutoff:
            hits.popleft()

    def _sweep(self, now: float, window_seconds: int) -> None:
        """Drop identifiers whose whole history fell out of the window"""
        if now - self._last_cleanup < self._cleanup_interval:
            return

        for identifier in list(self._hits):
            self._expire(self._hits[identifier], now - window_seconds)
            if not self._hits[identifier]:
                del self._hits[identifier]
        self._last_cleanup = now

    def is_allowed(self, identifier: str, max_requests: int, window_seconds: int = 60) -> Tuple[bool, int, int]:
        """
        Record a hit for `identifier` if it fits in the window.

        Returns:
            Tuple of (is_allowed, remaining_requests, retry_after_seconds)
        """
        now = time.time()
        self._sweep(now, window_seconds)

        hits = self._hits[identifier]
        self._expire(hits, now - window_seconds)

        if len(hits) >= max_requests:
            retry_after = int(hits[0] + window_seconds - now) + 1 if hits else 1
            return False, 0, retry_after

        hits.append(now)
        return True, max_requests - len(hits), 0

    def reset(self):
        self._hits.clear()


rate_limiter = RateLimiter()


def get_client_ip(request: Request) -> str:
    """
    Get the client IP

    X-Forwarded-For is only honoured when the direct peer is a trusted proxy.
    """
    peer = request.client.host if request.client else None
    trusted = settings.get_trusted_proxies()

    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for and peer and ("*" in trusted or peer in trusted):
        # Take the first IP in the chain (original client)
        return forwarded_for.split(",")[0].strip()

    return peer or "unknown"


async def login_rate_limit(request: Request):
    """
    Dependency limiting login attempts per client IP.

    Usage:
        @router.post("/login")
        async def login(..., _: None = Depends(login_rate_limit)):
            ...
    """
    max_requests = settings.LOGIN_RATE_LIMIT_PER_MINUTE
    identifier = f"endpoint:{request.url.path}:ip:{get_client_ip(request)}"

    is_allowed, _, retry_after = rate_limiter.is_allowed(
        identifier=identifier,
        max_requests=max_requests,
        window_seconds=60
    )

    if not is_allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Too many login attempts. Try again in {retry_after} seconds.",
            headers={
                "X-RateLimit-Limit": str(max_requests),
                "X-RateLimit-Remaining": "0",
                "Retry-After": str(retry_after),
            }
        )
