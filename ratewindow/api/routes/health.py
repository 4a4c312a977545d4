from __future__ import annotations

from fastapi import APIRouter

from ratewindow.core.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness endpoint for load balancers and monitoring.

    Never rate limited and never touches the counter store, so it stays green
    while Redis is down.

    Returns:
        dict: ``status`` plus the configured counter store backend.
    """

    return {"status": "ok", "rate_limit_backend": settings.rate_limit.backend.lower()}
