"""Pydantic schemas for rate limit responses."""

from __future__ import annotations

from pydantic import BaseModel, Field


class RateLimitStatusResponse(BaseModel):
    """Current rolling-window usage for the calling client."""

    limit: int = Field(
        ..., ge=1, description="Maximum number of requests allowed per rolling period."
    )
    period_minutes: int = Field(
        ..., ge=1, description="Length of the rolling period in minutes."
    )
    total: int = Field(
        ..., ge=0, description="Requests counted in the current period."
    )
    remaining: int = Field(
        ..., ge=0, description="Requests left before the caller is throttled."
    )
    exceeded: bool = Field(
        ..., description="Whether the caller has reached the limit (inclusive)."
    )
    reset_at: int = Field(
        ...,
        description="UNIX epoch seconds when the oldest counted minute leaves the window.",
    )


class PingResponse(BaseModel):
    """Response of the rate-limited ping endpoint."""

    pong: bool = Field(True, description="Always true when the request was allowed.")
