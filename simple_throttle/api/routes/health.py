from __future__ import annotations

import logging

from fastapi import APIRouter
from redis.exceptions import RedisError

from simple_throttle.adapters.store.default import get_default_store
from simple_throttle.core.errors import StoreUnavailableAppError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness check.

    Returns:
        dict: A dictionary with a single "status" key set to "ok".
    """

    return {"status": "ok"}


@router.get("/health/store")
def store_health_check() -> dict:
    """Readiness check: ping the default throttle store.

    Raises:
        StoreUnavailableAppError: 503 when the store does not answer.
    """

    try:
        get_default_store().ping()
    except RedisError as exc:
        logger.warning("health.store_unreachable", extra={"error_type": type(exc).__name__})
        raise StoreUnavailableAppError(
            code="throttle_store_unavailable",
            message="Throttle store is unreachable",
            details={"error_type": type(exc).__name__},
        ) from exc

    return {"status": "ok", "store": "ok"}
