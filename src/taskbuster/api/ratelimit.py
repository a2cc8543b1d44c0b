"""Per-client fixed-window rate limiting for the task endpoint."""

from __future__ import annotations

import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import Request

from taskbuster.logging import get_logger

logger = get_logger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."


@dataclass
class RateLimitInfo:
    limit: int
    remaining: int
    reset_at: float
    retry_after: int


class RateLimitExceeded(Exception):
    def __init__(self, info: RateLimitInfo) -> None:
        self.info = info
        super().__init__(RATE_LIMIT_MESSAGE)


def client_key(request: Request, trust_proxy: bool = False) -> str:
    forwarded = request.headers.get("X-Forwarded-For") if trust_proxy else None
    if forwarded:
        return f"ip:{forwarded.split(',')[0].strip()}"
    host = request.client.host if request.client else "unknown"
    return f"ip:{host}"


class FixedWindowRateLimiter:
    """Counts requests per key inside windows of ``window_seconds``."""

    def __init__(
        self,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic,
        trust_proxy: bool = False,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self.trust_proxy = trust_proxy
        self._clock = clock
        self._windows: dict[str, tuple[float, int]] = {}
        self._last_sweep = clock()
        self._lock = threading.Lock()

    def hit(self, key: str) -> RateLimitInfo:
        now = self._clock()
        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(now)
            start, count = self._windows.get(key, (now, 0))
            if now - start >= self.window_seconds:
                start, count = now, 0
            count += 1
            self._windows[key] = (start, count)
        reset_at = start + self.window_seconds
        info = RateLimitInfo(
            limit=self.limit,
            remaining=max(0, self.limit - count),
            reset_at=reset_at,
            retry_after=max(1, math.ceil(reset_at - now)),
        )
        if count > self.limit:
            logger.warning(f"Rate limit exceeded for {key} ({count}/{self.limit})")
            raise RateLimitExceeded(info)
        return info

    def _sweep(self, now: float) -> None:
        # caller holds the lock
        expired = [
            key
            for key, (start, _) in self._windows.items()
            if now - start >= self.window_seconds
        ]
        for key in expired:
            del self._windows[key]
        self._last_sweep = now
        if expired:
            logger.debug(f"Evicted {len(expired)} expired rate limit windows")

    @property
    def tracked_keys(self) -> int:
        return len(self._windows)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    async def __call__(self, request: Request) -> RateLimitInfo:
        return self.hit(client_key(request, self.trust_proxy))
