"""Application factory for the throttle HTTP API.

Centralizes app construction (logging, middleware, handlers, configured
throttles, routers) so tests can build fresh instances.
"""

from __future__ import annotations

from fastapi import FastAPI

from simple_throttle.api.routes import health_router, throttles_router
from simple_throttle.core.config import settings
from simple_throttle.core.exception_handlers import setup_exception_handlers
from simple_throttle.core.logging import configure_logging
from simple_throttle.core.middleware import request_id_middleware
from simple_throttle.core.openapi import apply_openapi_customizations
from simple_throttle.core.registry import register_from_settings


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Simple Throttle API",
        description=(
            "Distributed sliding-window throttles coordinated through a shared "
            "Redis store. Inspect, check and reset named throttles; every "
            "endpoint is itself rate limited per API key."
        ),
        version="0.1.0",
        debug=settings.app.debug,
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    register_from_settings(settings.app.throttles)

    app.include_router(throttles_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
