"""Rate limiting adapters.

This package adapts the shared-store sliding-window throttle to per-client
HTTP rate limiting, so every API worker enforces one combined budget.
"""

from simple_throttle.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from simple_throttle.adapters.rate_limit.sliding_window import SlidingWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "RateLimitResult",
    "SlidingWindowRateLimiter",
]
