"""Factory pattern for creating counter store instances."""

from ratewindow.adapters.counter_store.base import AbstractCounterStore
from ratewindow.adapters.counter_store.in_memory import InMemoryCounterStore
from ratewindow.adapters.counter_store.redis_store import RedisCounterStore
from ratewindow.core.config import Settings, settings
from ratewindow.core.errors import InvalidConfigurationError


def create_counter_store(config: Settings | None = None) -> AbstractCounterStore:
    """Factory function to instantiate a counter store based on the backend.

    Reads configuration from ratewindow.core.config.settings unless a
    Settings instance is passed explicitly.

    Returns:
        AbstractCounterStore: Configured store instance.

    Raises:
        InvalidConfigurationError: If backend-specific requirements are not met.
    """
    cfg = config or settings
    backend = cfg.rate_limit.backend.lower()

    if backend == "memory":
        return InMemoryCounterStore()

    if backend == "redis":
        if not cfg.redis.url:
            raise InvalidConfigurationError(
                code="redis_missing_url",
                message="Redis backend requires REDIS_URL environment variable",
            )
        return RedisCounterStore.from_url(
            cfg.redis.url,
            socket_timeout=cfg.redis.socket_timeout_seconds,
        )

    raise InvalidConfigurationError(
        code="counter_store_unknown_backend",
        message=(
            f"Unknown counter store backend: '{backend}'. Supported backends: memory, redis"
        ),
    )
