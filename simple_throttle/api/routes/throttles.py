from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from simple_throttle.core.auth import verify_api_key
from simple_throttle.core.errors import NotFoundAppError
from simple_throttle.core.rate_limit import enforce_rate_limit
from simple_throttle.core.registry import get_registry, lookup
from simple_throttle.core.throttle import Throttle
from simple_throttle.schemas.throttle import (
    AllowedResponse,
    IncrementRequest,
    IncrementResponse,
    ThrottleListResponse,
    ThrottleStatusResponse,
)

router = APIRouter(
    prefix="/throttles",
    tags=["Throttles"],
    dependencies=[Depends(verify_api_key), Depends(enforce_rate_limit)],
)


def _get_throttle(name: str) -> Throttle:
    throttle = lookup(name)
    if throttle is None:
        raise NotFoundAppError(
            code="throttle_not_found",
            message=f"Throttle '{name}' is not registered",
            details={"throttle": name},
        )
    return throttle


@router.get("", response_model=ThrottleListResponse)
def list_throttles() -> ThrottleListResponse:
    """List the names of all registered throttles."""

    return ThrottleListResponse(names=get_registry().names())


@router.get("/{name}", response_model=ThrottleStatusResponse)
def get_throttle_status(name: str) -> ThrottleStatusResponse:
    """Return configuration, current count and wait time for a throttle.

    Read-only: inspecting a throttle never records an event.
    """

    throttle = _get_throttle(name)
    return ThrottleStatusResponse(
        name=throttle.name,
        limit=throttle.limit,
        ttl=throttle.ttl,
        pause_to_recover=throttle.pause_to_recover,
        count=throttle.peek(),
        wait_time_seconds=throttle.wait_time(),
    )


@router.post("/{name}/allowed", response_model=AllowedResponse)
def check_allowed(name: str) -> AllowedResponse:
    """Record one event and report whether it was within the limit."""

    throttle = _get_throttle(name)
    return AllowedResponse(name=throttle.name, allowed=throttle.allowed())


@router.post("/{name}/increment", response_model=IncrementResponse)
def increment_throttle(name: str, payload: IncrementRequest | None = None) -> IncrementResponse:
    """Record ``amount`` events with exact accounting and return the new count."""

    throttle = _get_throttle(name)
    amount = payload.amount if payload else 1
    count = throttle.increment(amount)
    return IncrementResponse(name=throttle.name, count=count, allowed=count <= throttle.limit)


@router.delete("/{name}", status_code=status.HTTP_204_NO_CONTENT)
def reset_throttle(name: str) -> Response:
    """Clear a throttle's window."""

    _get_throttle(name).reset()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
