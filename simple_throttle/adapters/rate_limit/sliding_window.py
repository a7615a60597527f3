"""Shared-store sliding-window rate limiter.

Notes:
- Cross-process: every worker pointing at the same store shares one budget
  per key, unlike a per-process in-memory limiter.
- Stateless on the client: each key maps to a ``Throttle`` named
  ``<namespace>.<key>``; no local lock is taken on the hot path.
"""

from __future__ import annotations

import math
import time
from typing import Any, Callable

from simple_throttle.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from simple_throttle.core.throttle import Throttle


class SlidingWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter allowing ``limit`` units per rolling window per key.

    Unlike a fixed window, budget frees up gradually as individual requests
    age out of the window, so bursts at a window boundary cannot double the
    effective rate.
    """

    def __init__(
        self,
        *,
        limit: float,
        window_seconds: float,
        pause_to_recover: bool = False,
        store: Any = None,
        namespace: str = "http",
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the sliding-window rate limiter.

        Args:
            limit: Maximum number of allowed units per window.
            window_seconds: Size of the rolling window in seconds.
            pause_to_recover: Keep rejecting saturating clients until they pause.
            store: Optional store handle or resolver; defaults to the process
                default store.
            namespace: Prefix for the per-key throttle names.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If window_seconds is invalid.
        """
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")

        self._limit = limit
        self._window_seconds = window_seconds
        self._pause_to_recover = pause_to_recover
        self._store = store
        self._namespace = namespace
        self._clock = clock

    def throttle_for(self, key: str) -> Throttle:
        """Return the throttle tracking the given key."""

        return Throttle(
            f"{self._namespace}.{key}",
            self._limit,
            self._window_seconds,
            pause_to_recover=self._pause_to_recover,
            store=self._store,
            clock=self._clock,
        )

    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Consume rate limit budget for the provided key.

        Args:
            key: Unique identifier for rate limiting (e.g., hashed API key).
            cost: Units to consume (default 1).

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty or cost is invalid.
            redis.exceptions.RedisError: If the store cannot be reached.
        """
        if cost < 1:
            raise ValueError("cost must be >= 1")
        if not key:
            raise ValueError("key must be a non-empty string")

        throttle = self.throttle_for(key)
        count = throttle.increment(cost)
        now = self._clock()

        if count <= self._limit:
            return RateLimitResult(
                allowed=True,
                limit=self._limit,
                remaining=max(0, int(self._limit - count)),
                reset_at=int(math.ceil(now + self._window_seconds)),
                retry_after_seconds=None,
            )

        wait = throttle.wait_time()
        return RateLimitResult(
            allowed=False,
            limit=self._limit,
            remaining=0,
            reset_at=int(math.ceil(now + wait)),
            retry_after_seconds=max(0, int(math.ceil(wait))),
        )
