"""Counter store interfaces.

The limiter depends on this abstraction (not a concrete implementation) so
storage backends (in-memory, Redis, a database) can be swapped without
touching the windowing logic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class CounterResult:
    """Outcome of reading one counter key.

    Attributes:
        key: The counter key that was read.
        hit: Whether the key exists (and has not expired) in the store.
        value: Current counter value; 0 on a miss.
    """

    key: str
    hit: bool
    value: int = 0


class AbstractCounterStore(ABC):
    """Interface for counter stores backing the rate limiter.

    Implementations must make ``increment`` atomic under concurrent access.
    """

    @abstractmethod
    def increment(self, key: str, *, ttl_seconds: int, amount: int = 1) -> int:
        """Atomically add ``amount`` to a counter, creating it if absent.

        The TTL is applied only when the counter is created; later increments
        must not shorten or extend its expiry.

        Args:
            key: Counter key.
            ttl_seconds: Expiry for a newly created counter.
            amount: Units to add (default 1).

        Returns:
            The counter value after the increment.
        """
        raise NotImplementedError

    @abstractmethod
    def get_multi(self, keys: Sequence[str]) -> list[CounterResult]:
        """Read several counters in one batch.

        Args:
            keys: Counter keys to read.

        Returns:
            One CounterResult per key. Order is not guaranteed to match
            ``keys``; callers should match results by ``key``.
        """
        raise NotImplementedError
