"""
Per-user sliding-window rate limiting.

Each limiter is a process-wide object created at import time. State lives in
memory, so limits apply per process; multi-instance deployments need a shared
store instead.
"""

import logging
import time
from collections import deque
from typing import Annotated, Callable

from fastapi import Depends

from app.api.v1.endpoints.auth import get_current_user
from app.config import settings
from app.core.exceptions import RateLimitError
from app.schemas.user import UserResponse

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """Allow at most ``max_requests`` per key within ``window_seconds``."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._last_sweep = clock()

    def hit(self, key: str) -> None:
        """Record a request for ``key`` or raise RateLimitError if the window is full."""
        now = self._clock()
        window_start = now - self.window_seconds

        if now - self._last_sweep >= self.window_seconds:
            self._sweep(window_start)
            self._last_sweep = now

        hits = self._hits.setdefault(key, deque())
        while hits and hits[0] <= window_start:
            hits.popleft()

        if len(hits) >= self.max_requests:
            logger.warning("Rate limit exceeded for %s (%d requests)", key, len(hits))
            raise RateLimitError(retry_after=self.window_seconds)

        hits.append(now)

    def _sweep(self, window_start: float) -> None:
        """Drop keys with no hits left in the window."""
        idle = [key for key, hits in self._hits.items() if not hits or hits[-1] <= window_start]
        for key in idle:
            del self._hits[key]

    def remaining(self, key: str) -> int:
        now = self._clock()
        hits = self._hits.get(key)
        if not hits:
            return self.max_requests
        active = sum(1 for ts in hits if ts > now - self.window_seconds)
        return max(0, self.max_requests - active)

    def reset(self) -> None:
        self._hits.clear()
        self._last_sweep = self._clock()


matches_limiter = SlidingWindowRateLimiter(
    settings.MATCHES_RATE_LIMIT, settings.RATE_LIMIT_WINDOW_SECONDS
)
users_limiter = SlidingWindowRateLimiter(
    settings.USERS_RATE_LIMIT, settings.RATE_LIMIT_WINDOW_SECONDS
)


def user_rate_limit(limiter: SlidingWindowRateLimiter):
    """Build a router dependency that charges one request to the current user."""

    async def dependency(
        current_user: Annotated[UserResponse, Depends(get_current_user)],
    ) -> None:
        limiter.hit(str(current_user.id))

    return dependency
