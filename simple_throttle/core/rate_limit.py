"""Rate limiting dependency for FastAPI routes.

This module wires the sliding-window rate limiting adapter into the HTTP layer.

Design goals:
- Minimal coupling: API routes depend on a dependency function only.
- Shared budget: limits are counted in the shared store, so every worker
  process enforces the same per-key budget.
- Explicit failure posture: when the store is unreachable, either let the
  request through (fail-open) or answer 503 (fail-closed).

Rate limiting strategy:
- Rolling-window limit per API key.
- If API key is missing (e.g., auth disabled), fall back to client IP.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Annotated

from fastapi import Header, HTTPException, Request, status
from redis.exceptions import RedisError

from simple_throttle.adapters.rate_limit.base import AbstractRateLimiter
from simple_throttle.adapters.rate_limit.sliding_window import SlidingWindowRateLimiter
from simple_throttle.core.config import settings
from simple_throttle.core.errors import StoreUnavailableAppError

logger = logging.getLogger(__name__)


_limiter: AbstractRateLimiter | None = None
_limiter_config: tuple[float, float, bool] | None = None


def get_rate_limiter() -> AbstractRateLimiter:
    """Return a process-wide rate limiter instance.

    If configuration changes (primarily in tests), the limiter is rebuilt.

    Returns:
        AbstractRateLimiter: Configured limiter instance.
    """

    global _limiter, _limiter_config

    config = (
        settings.app.rate_limit_requests,
        settings.app.rate_limit_window_seconds,
        settings.app.rate_limit_pause_to_recover,
    )

    if _limiter is None or _limiter_config != config:
        _limiter = SlidingWindowRateLimiter(
            limit=settings.app.rate_limit_requests,
            window_seconds=settings.app.rate_limit_window_seconds,
            pause_to_recover=settings.app.rate_limit_pause_to_recover,
        )
        _limiter_config = config

    return _limiter


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key so secrets never reach logs or store keys."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def _build_rate_limit_key(request: Request, x_api_key: str | None) -> str:
    """Build the limiter key for the current request.

    Args:
        request: FastAPI request.
        x_api_key: API key value from the X-API-Key header.

    Returns:
        str: Namespaced limiter key with the identifying part hashed.
    """

    if x_api_key:
        return f"api_key:{_hash_limiter_key(x_api_key)}"

    client_host = request.client.host if request.client else "unknown"
    return f"ip:{_hash_limiter_key(client_host)}"


async def enforce_rate_limit(
    request: Request,
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> None:
    """FastAPI dependency enforcing rate limits.

    When enabled, consumes 1 unit from the requester's budget. If the requester
    exceeds the configured rate, raises HTTP 429.

    Args:
        request: FastAPI request.
        x_api_key: API key from X-API-Key header.

    Raises:
        HTTPException: 429 Too Many Requests when rate limit is exceeded.
        StoreUnavailableAppError: When the store is unreachable and
            APP_RATE_LIMIT_FAIL_OPEN is false.
    """

    if not settings.app.rate_limit_enabled:
        return

    limiter = get_rate_limiter()
    key = _build_rate_limit_key(request, x_api_key)
    key_type = "api_key" if x_api_key else "ip"

    try:
        result = limiter.consume(key)
    except RedisError as exc:
        if settings.app.rate_limit_fail_open:
            logger.warning(
                "rate_limit.store_unavailable",
                extra={
                    "key_type": key_type,
                    "error_type": type(exc).__name__,
                    "fail_open": True,
                },
            )
            return
        raise StoreUnavailableAppError(
            code="throttle_store_unavailable",
            message="Rate limit store is unavailable. Try again later.",
            details={"error_type": type(exc).__name__},
        ) from exc

    if result.allowed:
        logger.info(
            "rate_limit.allowed",
            extra={
                "key_type": key_type,
                "limit_key": key,
                "limit": result.limit,
                "remaining": result.remaining,
                "window_s": settings.app.rate_limit_window_seconds,
            },
        )
        return

    retry_after = result.retry_after_seconds or 0
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_type": key_type,
            "limit_key": key,
            "limit": result.limit,
            "remaining": result.remaining,
            "window_s": settings.app.rate_limit_window_seconds,
            "retry_after_s": retry_after,
        },
    )

    headers: dict[str, str] = {}
    if settings.app.rate_limit_include_headers:
        headers["Retry-After"] = str(retry_after)
        headers["X-RateLimit-Limit"] = f"{result.limit:g}"
        headers["X-RateLimit-Remaining"] = str(result.remaining)
        headers["X-RateLimit-Reset"] = str(result.reset_at)

    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail="Rate limit exceeded. Try again later.",
        headers=headers or None,
    )
