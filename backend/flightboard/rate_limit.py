"""
Per-client rate limiting for the flights API.

Sliding window: each client IP may make max_requests calls within
window_seconds. Used as a FastAPI dependency on the flights router.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Callable, Optional

from fastapi import HTTPException, Request

from flightboard.config import get_settings

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.enabled = enabled
        self._clock = clock
        self._requests: dict[str, deque[float]] = defaultdict(deque)

    def _cleanup(self, now: float):
        """Drop expired timestamps, and clients whose window is now empty."""
        cutoff = now - self.window_seconds
        for key in list(self._requests):
            window = self._requests[key]
            while window and window[0] <= cutoff:
                window.popleft()
            if not window:
                del self._requests[key]

    def try_acquire(self, key: str) -> bool:
        """Record a request for key; False if it would exceed the limit."""
        if not self.enabled:
            return True
        now = self._clock()
        self._cleanup(now)
        window = self._requests[key]
        if len(window) >= self.max_requests:
            return False
        window.append(now)
        return True

    @property
    def tracked_clients(self) -> int:
        return len(self._requests)

    def retry_after(self, key: str) -> int:
        """Seconds until the oldest request for key leaves the window."""
        window = self._requests.get(key)
        if not window:
            return 0
        return max(1, int(window[0] + self.window_seconds - self._clock()) + 1)

    def reset(self):
        self._requests.clear()


_limiter: Optional[SlidingWindowRateLimiter] = None


def get_rate_limiter() -> SlidingWindowRateLimiter:
    global _limiter
    if _limiter is None:
        settings = get_settings()
        _limiter = SlidingWindowRateLimiter(
            max_requests=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
            enabled=settings.rate_limit_enabled,
        )
    return _limiter


async def check_rate_limit(request: Request) -> None:
    limiter = get_rate_limiter()
    client_ip = request.client.host if request.client else "unknown"
    if not limiter.try_acquire(client_ip):
        retry_after = limiter.retry_after(client_ip)
        logger.warning(f"Rate limit exceeded for {client_ip}")
        raise HTTPException(
            status_code=429,
            detail=f"Too many requests. Retry in {retry_after} seconds.",
            headers={"Retry-After": str(retry_after)},
        )
