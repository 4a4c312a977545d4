"""Fixed-granularity sliding-window rate limiter.

A rolling period of ``period`` minutes is approximated by ``period``
independent per-minute counters. Each request increments the counter of the
minute it falls in; a check reads the counters of the current minute and the
``period - 1`` minutes before it in one batch and sums them.

Cost per call:
- ``increment``: one atomic store write.
- ``get_total`` / ``exceeded``: one batched read of ``period`` keys.

Counters expire after ``(period + 1) * 60`` seconds, so storage stays bounded
without any explicit cleanup.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable

from ratewindow.adapters.counter_store.base import AbstractCounterStore
from ratewindow.core.errors import InvalidConfigurationError
from ratewindow.utils.bucket_keys import (
    DEFAULT_KEY_PREFIX,
    Identifiers,
    Timestamp,
    build_bucket_key,
    identifiers_digest,
    to_epoch_seconds,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitResult:
    """Snapshot of a rate limit decision.

    Attributes:
        allowed: Whether the request may proceed.
        limit: Max requests per rolling period.
        remaining: Requests left in the current period (0 when blocked).
        total: Requests counted in the current period.
        reset_at: UNIX epoch seconds when the oldest bucket leaves the window.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    total: int
    reset_at: int
    retry_after_seconds: int | None


def _validate_positive(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidConfigurationError(
            code=f"invalid_{name}",
            message=f"{name} must be a positive integer",
            details={"field": name, "min_value": 1, "actual_value": value},
        )


class RateLimiter:
    """Rate limiter counting requests in per-minute buckets of a counter store.

    The limiter is stateless apart from the injected store and its immutable
    configuration, so one instance can be shared across threads as long as
    the store's increment is atomic.
    """

    def __init__(
        self,
        store: AbstractCounterStore,
        limit: int,
        period: int,
        *,
        clock: Callable[[], float] = time.time,
        key_prefix: str = DEFAULT_KEY_PREFIX,
    ) -> None:
        """Initialize the limiter.

        Args:
            store: Counter store holding the per-minute buckets.
            limit: Number of requests allowed in the rolling period.
            period: Length of the rolling period in minutes.
            clock: Time source used when no explicit time is passed.
            key_prefix: Namespace for the counter keys.

        Raises:
            InvalidConfigurationError: If limit, period or key_prefix are invalid.
        """
        _validate_positive("limit", limit)
        _validate_positive("period", period)
        if not key_prefix or ":" in key_prefix:
            raise InvalidConfigurationError(
                code="invalid_key_prefix",
                message="key_prefix must be non-empty and must not contain ':'",
                details={"field": "key_prefix", "actual_value": key_prefix},
            )

        self._store = store
        self._limit = limit
        self._period = period
        self._clock = clock
        self._key_prefix = key_prefix

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"RateLimiter(limit={self._limit}, period={self._period}, store={self._store!r})"

    @property
    def limit(self) -> int:
        """Number of requests allowed in the rolling period."""
        return self._limit

    @property
    def period(self) -> int:
        """Length of the rolling period in minutes."""
        return self._period

    @property
    def ttl_seconds(self) -> int:
        """Lifetime of a bucket: the whole window plus one spare minute."""
        return (self._period + 1) * 60

    def get_limit(self) -> int:
        return self._limit

    def get_period(self) -> int:
        return self._period

    def _resolve_time(self, now: Timestamp | None) -> int:
        return to_epoch_seconds(self._clock() if now is None else now)

    def get_cache_key(self, identifiers: Identifiers, now: Timestamp | None = None) -> str:
        """Return the bucket key for the minute containing ``now``.

        Raises:
            InvalidIdentifiersError: If the identifiers cannot be canonicalized.
        """

        return build_bucket_key(
            identifiers_digest(identifiers),
            self._resolve_time(now),
            prefix=self._key_prefix,
        )

    def get_cache_keys_to_check(
        self, identifiers: Identifiers, now: Timestamp | None = None
    ) -> list[str]:
        """Return the ``period`` bucket keys of the window ending at ``now``.

        Keys are ordered newest first: the current minute, then each earlier
        minute in turn.
        """

        epoch = self._resolve_time(now)
        digest = identifiers_digest(identifiers)
        return [
            build_bucket_key(digest, epoch - interval * 60, prefix=self._key_prefix)
            for interval in range(self._period)
        ]

    def increment(self, identifiers: Identifiers, now: Timestamp | None = None) -> int:
        """Count one request in the bucket of the current minute.

        Store errors are not caught here.

        Returns:
            The bucket's count after the increment.
        """

        key = self.get_cache_key(identifiers, now)
        count = self._store.increment(key, ttl_seconds=self.ttl_seconds)
        logger.debug(
            "rate_limit.increment",
            extra={"bucket": key.rsplit(":", 1)[0], "bucket_count": count},
        )
        return count

    def get_total(self, identifiers: Identifiers, now: Timestamp | None = None) -> int:
        """Sum the counters of every bucket in the window ending at ``now``.

        Missing or expired buckets count as zero.
        """

        keys = self.get_cache_keys_to_check(identifiers, now)
        wanted = set(keys)
        total = 0
        for result in self._store.get_multi(keys):
            if result.hit and result.key in wanted:
                total += int(result.value)
        return total

    def exceeded(self, identifiers: Identifiers, now: Timestamp | None = None) -> bool:
        """Whether the window total has reached the limit (inclusive)."""

        return self.get_total(identifiers, now) >= self._limit

    def _build_result(self, *, epoch: int, total: int, allowed: bool) -> RateLimitResult:
        reset_at = (epoch // 60 + 1) * 60
        return RateLimitResult(
            allowed=allowed,
            limit=self._limit,
            remaining=max(0, self._limit - total),
            total=total,
            reset_at=reset_at,
            retry_after_seconds=None if allowed else max(1, int(math.ceil(reset_at - epoch))),
        )

    def check(self, identifiers: Identifiers, now: Timestamp | None = None) -> RateLimitResult:
        """Report the current status without consuming budget."""

        epoch = self._resolve_time(now)
        total = self.get_total(identifiers, epoch)
        return self._build_result(epoch=epoch, total=total, allowed=total < self._limit)

    def hit(self, identifiers: Identifiers, now: Timestamp | None = None) -> RateLimitResult:
        """Check the window and, when allowed, count this request.

        The check and the increment are two store calls, so concurrent callers
        may overshoot the limit by the number of in-flight requests.

        Returns:
            RateLimitResult reflecting the count after this request.
        """

        epoch = self._resolve_time(now)
        total = self.get_total(identifiers, epoch)
        if total >= self._limit:
            return self._build_result(epoch=epoch, total=total, allowed=False)

        self.increment(identifiers, epoch)
        return self._build_result(epoch=epoch, total=total + 1, allowed=True)
