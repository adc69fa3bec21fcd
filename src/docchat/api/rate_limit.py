"""Per-client fixed-window rate limiting for the API."""

from __future__ import annotations

import math
import time
from typing import TYPE_CHECKING, Callable, Optional

from fastapi import Request

from docchat.exceptions import RateLimitedError

if TYPE_CHECKING:
    from docchat.core.config import RateLimitConfig


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


class FixedWindowRateLimiter:
    """In-process request counters keyed by client, reset when each window ends.

    Counters are not shared between processes.
    """

    def __init__(
        self,
        max_requests: int = 60,
        window_ms: int = 60_000,
        *,
        enabled: bool = True,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.max_requests = max_requests
        self.window_ms = window_ms
        self.enabled = enabled
        self._clock = clock or _monotonic_ms
        self._counts: dict[str, int] = {}
        self._resets: dict[str, float] = {}

    @classmethod
    def from_config(cls, config: RateLimitConfig, clock: Optional[Callable[[], float]] = None) -> FixedWindowRateLimiter:
        return cls(config.max_requests, config.window_ms, enabled=config.enabled, clock=clock)

    def check(self, key: str) -> int:
        """Count one request for *key* and return how many remain in the window.

        Raises ``RateLimitedError`` with the seconds until the window resets.
        """
        if not self.enabled:
            return self.max_requests

        now = self._clock()
        reset_at = self._resets.get(key)
        if reset_at is None or now >= reset_at:
            self._counts[key] = 1
            self._resets[key] = now + self.window_ms
            return self.max_requests - 1

        if self._counts[key] >= self.max_requests:
            retry_after = max(1, math.ceil((reset_at - now) / 1000))
            raise RateLimitedError("Rate limit exceeded", retry_after=retry_after)

        self._counts[key] += 1
        return self.max_requests - self._counts[key]

    def reset(self, key: str) -> None:
        self._counts.pop(key, None)
        self._resets.pop(key, None)


async def enforce_rate_limit(request: Request) -> None:
    """FastAPI dependency: one request against the calling client's window."""
    limiter: FixedWindowRateLimiter = request.app.state.rate_limiter
    client = request.client.host if request.client else "anonymous"
    limiter.check(client)
