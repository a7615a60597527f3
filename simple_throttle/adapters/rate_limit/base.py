"""Rate limiter interfaces.

The API depends on this abstraction rather than on the throttle directly,
so the HTTP layer only sees allow/deny decisions and header metadata.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per rolling window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when a slot is expected to free up.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: float
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Consume rate limit budget for a given key.

        Args:
            key: Unique identifier (e.g., hashed API key, IP address).
            cost: Units to consume (default 1).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError
