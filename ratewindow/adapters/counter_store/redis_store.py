"""Redis-backed counter store.

Counters are plain Redis integers. Creation and increment run in a single
MULTI/EXEC transaction (``SET key 0 EX ttl NX`` followed by ``INCRBY``), so the
TTL is set exactly once, when the bucket is first written, and concurrent
writers never lose an increment.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from ratewindow.adapters.counter_store.base import AbstractCounterStore, CounterResult
from ratewindow.core.errors import StoreError, StoreUnavailableError

logger = logging.getLogger(__name__)


def _translate_error(exc: RedisError, *, operation: str, key_count: int) -> StoreError:
    """Map a redis-py exception onto the store error hierarchy."""

    details = {"backend": "redis", "key_count": key_count, "context": {"operation": operation}}
    if isinstance(exc, (RedisConnectionError, RedisTimeoutError)):
        return StoreUnavailableError(
            code="counter_store_unavailable",
            message=f"Redis unavailable during {operation}: {exc}",
            details=details,  # type: ignore[arg-type]
        )
    return StoreError(
        code="counter_store_error",
        message=f"Redis error during {operation}: {exc}",
        details=details,  # type: ignore[arg-type]
    )


def _parse_count(key: str, raw: bytes | str) -> int:
    """Decode a counter value, rejecting anything that is not an integer."""

    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        logger.warning(
            "counter_store.invalid_value",
            extra={"operation": "get_multi", "bucket": key.rsplit(":", 1)[0]},
        )
        raise StoreError(
            code="counter_store_error",
            message="Counter key holds a non-integer value",
            details={"backend": "redis", "key_count": 1},
        ) from exc


class RedisCounterStore(AbstractCounterStore):
    """Counter store shared by every process connected to one Redis."""

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str, *, socket_timeout: float = 1.0) -> "RedisCounterStore":
        """Create a store from a Redis URL.

        Args:
            url: Connection URL, e.g. ``redis://localhost:6379/0``.
            socket_timeout: Connect and read timeout in seconds.
        """

        client = redis.Redis.from_url(
            url,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        return cls(client)

    def increment(self, key: str, *, ttl_seconds: int, amount: int = 1) -> int:
        if not key:
            raise ValueError("key must be a non-empty string")
        if ttl_seconds < 1:
            raise ValueError("ttl_seconds must be >= 1")
        if amount < 1:
            raise ValueError("amount must be >= 1")

        try:
            with self._client.pipeline(transaction=True) as pipe:
                pipe.set(key, 0, ex=ttl_seconds, nx=True)
                pipe.incrby(key, amount)
                _, count = pipe.execute()
        except RedisError as exc:
            logger.warning(
                "counter_store.redis_error",
                extra={"operation": "increment", "error_type": type(exc).__name__},
            )
            raise _translate_error(exc, operation="increment", key_count=1) from exc

        return int(count)

    def get_multi(self, keys: Sequence[str]) -> list[CounterResult]:
        if not keys:
            return []

        key_list = list(keys)
        try:
            values = self._client.mget(key_list)
        except RedisError as exc:
            logger.warning(
                "counter_store.redis_error",
                extra={"operation": "get_multi", "error_type": type(exc).__name__},
            )
            raise _translate_error(exc, operation="get_multi", key_count=len(key_list)) from exc

        results: list[CounterResult] = []
        for key, raw in zip(key_list, values):
            if raw is None:
                results.append(CounterResult(key=key, hit=False))
            else:
                results.append(CounterResult(key=key, hit=True, value=_parse_count(key, raw)))
        return results
