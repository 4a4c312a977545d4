"""Application factory for the FastAPI reference service.

Centralizes app construction (metadata, middleware, handlers, routers) to
improve testability.
"""

from __future__ import annotations

from fastapi import FastAPI

from ratewindow.api.routes import health_router, limits_router
from ratewindow.core.config import settings
from ratewindow.core.exception_handlers import setup_exception_handlers
from ratewindow.core.logging import configure_logging
from ratewindow.core.middleware import request_id_middleware


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="ratewindow",
        description=(
            "Sliding-window rate limiting service. Requests are counted in "
            "per-minute buckets and summed over a rolling period."
        ),
        version="0.1.0",
        openapi_tags=[
            {"name": "RateLimit", "description": "Rate-limited and status endpoints."},
            {"name": "Health", "description": "Liveness checks."},
        ],
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(limits_router, prefix="/v1")
    app.include_router(health_router)

    return app
