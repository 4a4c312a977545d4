"""In-memory counter store with per-key TTL.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Callable

from ratewindow.adapters.counter_store.base import AbstractCounterStore, CounterResult

logger = logging.getLogger(__name__)


@dataclass
class _CounterState:
    count: int
    expires_at: float


class InMemoryCounterStore(AbstractCounterStore):
    """Counter store keeping per-minute buckets in a process-local dict.

    Expired entries are dropped lazily when their key is touched, and a full
    sweep runs at most once per ``sweep_interval_seconds`` on write, so memory
    stays bounded without scanning every counter on every request.

    Important:
        This store is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker counts
        independently. Use the Redis store for shared limits.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.time,
        sweep_interval_seconds: float = 60.0,
    ) -> None:
        """Initialize the in-memory store.

        Args:
            clock: Time source function returning UNIX time in seconds.
            sweep_interval_seconds: Minimum time between full expiry sweeps.

        Raises:
            ValueError: If sweep_interval_seconds is negative.
        """
        if sweep_interval_seconds < 0:
            raise ValueError("sweep_interval_seconds must be >= 0")

        self._clock = clock
        self._sweep_interval = sweep_interval_seconds
        self._next_sweep_at = clock() + sweep_interval_seconds
        self._lock = threading.RLock()
        self._counters: dict[str, _CounterState] = {}

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"InMemoryCounterStore(size={len(self._counters)})"

    def __len__(self) -> int:
        with self._lock:
            self._evict_expired_locked(self._clock())
            return len(self._counters)

    def _is_expired(self, state: _CounterState, now: float) -> bool:
        return now >= state.expires_at

    def _evict_expired_locked(self, now: float) -> None:
        expired_keys = [k for k, state in self._counters.items() if self._is_expired(state, now)]
        for key in expired_keys:
            self._counters.pop(key, None)
        self._next_sweep_at = now + self._sweep_interval

    def increment(self, key: str, *, ttl_seconds: int, amount: int = 1) -> int:
        """Add ``amount`` to the counter, creating it with the TTL if absent.

        Raises:
            ValueError: If key is empty, ttl_seconds < 1 or amount < 1.
        """
        if not key:
            raise ValueError("key must be a non-empty string")
        if ttl_seconds < 1:
            raise ValueError("ttl_seconds must be >= 1")
        if amount < 1:
            raise ValueError("amount must be >= 1")

        now = self._clock()
        with self._lock:
            if now >= self._next_sweep_at:
                self._evict_expired_locked(now)
            state = self._counters.get(key)
            if state is None or self._is_expired(state, now):
                state = _CounterState(count=0, expires_at=now + ttl_seconds)
                self._counters[key] = state
            state.count += amount
            count = state.count

        logger.debug(
            "counter_store.increment",
            extra={"cache_key": key[:32], "count": count, "ttl_s": ttl_seconds},
        )
        return count

    def get_multi(self, keys: Sequence[str]) -> list[CounterResult]:
        now = self._clock()
        results: list[CounterResult] = []
        with self._lock:
            for key in keys:
                state = self._counters.get(key)
                if state is None:
                    results.append(CounterResult(key=key, hit=False))
                    continue
                if self._is_expired(state, now):
                    self._counters.pop(key, None)
                    results.append(CounterResult(key=key, hit=False))
                    continue
                results.append(CounterResult(key=key, hit=True, value=state.count))
        return results

    def clear(self) -> None:
        """Remove all counters."""

        with self._lock:
            self._counters.clear()
