from __future__ import annotations

from simple_throttle.api.routes.health import router as health_router
from simple_throttle.api.routes.throttles import router as throttles_router

__all__ = ["health_router", "throttles_router"]
