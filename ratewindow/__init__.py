"""Sliding-window rate limiting backed by per-minute counters."""

from ratewindow.adapters.counter_store import (
    AbstractCounterStore,
    CounterResult,
    InMemoryCounterStore,
    RedisCounterStore,
    create_counter_store,
)
from ratewindow.core.errors import (
    InvalidConfigurationError,
    InvalidIdentifiersError,
    StoreError,
    StoreUnavailableError,
)
from ratewindow.services.rate_limiter import RateLimiter, RateLimitResult

__all__ = [
    "AbstractCounterStore",
    "CounterResult",
    "InMemoryCounterStore",
    "InvalidConfigurationError",
    "InvalidIdentifiersError",
    "RateLimitResult",
    "RateLimiter",
    "RedisCounterStore",
    "StoreError",
    "StoreUnavailableError",
    "create_counter_store",
]
