"""Application-level exception types.

This module defines the errors raised by the limiter, the counter stores and
the HTTP layer, enabling consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep error payloads small while encouraging
    consistent shapes across the codebase.
    """

    code: str
    message: str
    hint: str
    field: str
    min_value: int
    actual_value: Any
    backend: str
    key_count: int
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class InvalidConfigurationError(AppError):
    """Raised when limiter or store configuration is invalid."""


class InvalidIdentifiersError(AppError):
    """Raised when an identifier set cannot be canonicalized."""


class StoreError(AppError):
    """Raised when a counter store operation fails."""


class StoreUnavailableError(StoreError):
    """Raised when the counter store cannot be reached or times out."""
