"""Pydantic schemas for the throttle HTTP API."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class ThrottleListResponse(BaseModel):
    """Names of the throttles registered in this process."""

    names: List[str] = Field(default_factory=list, description="Registered throttle names, sorted.")


class ThrottleStatusResponse(BaseModel):
    """Snapshot of one throttle's configuration and window."""

    name: str = Field(..., description="Throttle name.")
    limit: float = Field(..., description="Events allowed per rolling window.")
    ttl: float = Field(..., description="Window length in seconds.")
    pause_to_recover: bool = Field(..., description="Whether the pause-to-recover penalty is on.")
    count: int = Field(
        ...,
        description="Events currently inside the window (advisory under concurrent use).",
    )
    wait_time_seconds: float = Field(
        ...,
        description="Seconds until the next call should be allowed (0 when under the limit).",
    )


class AllowedResponse(BaseModel):
    """Outcome of an admission check."""

    name: str
    allowed: bool


class IncrementRequest(BaseModel):
    """Events to record in one call."""

    amount: int = Field(1, ge=1, description="Number of events to record.")


class IncrementResponse(BaseModel):
    """Count after recording, clamped to one past the effective limit."""

    name: str
    count: int = Field(..., description="Resulting count in the window.")
    allowed: bool = Field(..., description="True when count <= limit.")
