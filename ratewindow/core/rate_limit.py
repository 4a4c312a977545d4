"""Rate limiting dependency for FastAPI routes.

This module wires the sliding-window limiter into the HTTP layer.

Design goals:
- Minimal coupling: API routes depend on a dependency function only.
- Swap-friendly: the counter store is built by a factory behind an abstract
  interface (memory or Redis).
- Fail closed: store errors propagate and are answered with 503 by the
  exception handlers.

Identifiers per request:
- Client IP always.
- The X-API-Key header value when present. It is only used to tell callers
  apart and is never validated here.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Annotated

from fastapi import Header, HTTPException, Request, status

from ratewindow.adapters.counter_store.factory import create_counter_store
from ratewindow.core.config import settings
from ratewindow.services.rate_limiter import RateLimiter, RateLimitResult
from ratewindow.utils.bucket_keys import identifiers_digest

logger = logging.getLogger(__name__)


_limiter: RateLimiter | None = None
_limiter_config: tuple[int, int, str, str, str | None] | None = None


def get_rate_limiter() -> RateLimiter:
    """Return a process-wide rate limiter instance.

    The instance is cached in-module so the in-memory store keeps its state
    across requests. If configuration changes (primarily in tests), the
    limiter and its store are rebuilt.

    Returns:
        RateLimiter: Configured limiter instance.
    """

    global _limiter, _limiter_config

    cfg = settings.rate_limit
    config = (
        cfg.requests,
        cfg.period_minutes,
        cfg.backend.lower(),
        cfg.key_prefix,
        settings.redis.url,
    )

    if _limiter is None or _limiter_config != config:
        _limiter = RateLimiter(
            create_counter_store(settings),
            cfg.requests,
            cfg.period_minutes,
            key_prefix=cfg.key_prefix,
        )
        _limiter_config = config
        logger.info(
            "rate_limit.configured",
            extra={
                "limit": cfg.requests,
                "period_min": cfg.period_minutes,
                "backend": cfg.backend.lower(),
            },
        )

    return _limiter


def reset_rate_limiter() -> None:
    """Drop the cached limiter so the next request rebuilds it."""

    global _limiter, _limiter_config
    _limiter = None
    _limiter_config = None


def build_request_identifiers(request: Request, x_api_key: str | None) -> dict[str, str]:
    """Build the identifier set for the current request.

    Args:
        request: FastAPI request.
        x_api_key: API key value from the X-API-Key header.

    Returns:
        dict: Identifier set naming the caller.
    """

    identifiers = {"ip": request.client.host if request.client else "unknown"}
    if x_api_key:
        identifiers["api_key"] = x_api_key
    return identifiers


def build_rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """Build the standard throttling response headers."""

    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_at),
    }
    if result.retry_after_seconds is not None:
        headers["Retry-After"] = str(result.retry_after_seconds)
    return headers


async def enforce_rate_limit(
    request: Request,
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> None:
    """FastAPI dependency enforcing rate limits.

    When enabled, checks the caller's rolling window and counts the request
    if it is allowed. If the caller has reached the limit, raises HTTP 429.

    Args:
        request: FastAPI request.
        x_api_key: API key from X-API-Key header.

    Raises:
        HTTPException: 429 Too Many Requests when rate limit is exceeded.
        StoreError: When the counter store fails (handled as 503).
    """

    if not settings.rate_limit.enabled:
        return

    limiter = get_rate_limiter()
    identifiers = build_request_identifiers(request, x_api_key)
    key_hash = identifiers_digest(identifiers)[:16]
    key_type = "api_key" if x_api_key else "ip"

    # Store I/O (e.g. Redis) is blocking; keep it off the event loop.
    loop = asyncio.get_running_loop()
    result = await loop.run_in_executor(None, limiter.hit, identifiers)
    if result.allowed:
        logger.info(
            "rate_limit.allowed",
            extra={
                "key_type": key_type,
                "key_hash": key_hash,
                "limit": result.limit,
                "remaining": result.remaining,
                "period_min": limiter.period,
            },
        )
        return

    retry_after = result.retry_after_seconds or 0
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_type": key_type,
            "key_hash": key_hash,
            "limit": result.limit,
            "total": result.total,
            "period_min": limiter.period,
            "retry_after_s": retry_after,
        },
    )

    headers = build_rate_limit_headers(result) if settings.rate_limit.include_headers else None

    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail="Rate limit exceeded. Try again later.",
        headers=headers,
    )
