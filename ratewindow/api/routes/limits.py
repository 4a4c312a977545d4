from __future__ import annotations

import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request

from ratewindow.core import rate_limit
from ratewindow.core.rate_limit import build_request_identifiers, enforce_rate_limit
from ratewindow.schemas.rate_limit import PingResponse, RateLimitStatusResponse

router = APIRouter(tags=["RateLimit"])


@router.get(
    "/ping",
    response_model=PingResponse,
    dependencies=[Depends(enforce_rate_limit)],
)
async def ping() -> PingResponse:
    """Rate-limited endpoint.

    Each allowed call is counted against the caller's rolling window. Once
    the limit is reached the dependency answers 429 before this runs.
    """

    return PingResponse()


@router.get("/rate-limit", response_model=RateLimitStatusResponse)
async def rate_limit_status(
    request: Request,
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> RateLimitStatusResponse:
    """Report the caller's current window usage without consuming budget.

    Args:
        request: FastAPI request.
        x_api_key: Optional API key used as an extra identifier.

    Returns:
        RateLimitStatusResponse: Limit, period and counted requests.
    """

    limiter = rate_limit.get_rate_limiter()
    identifiers = build_request_identifiers(request, x_api_key)
    loop = asyncio.get_running_loop()
    result = await loop.run_in_executor(None, limiter.check, identifiers)
    return RateLimitStatusResponse(
        limit=result.limit,
        period_minutes=limiter.period,
        total=result.total,
        remaining=result.remaining,
        exceeded=not result.allowed,
        reset_at=result.reset_at,
    )
