"""Counter store adapters.

This package provides a small abstraction layer so the limiter can start with
an in-memory store and move to Redis or another shared store without changing
the windowing logic or the API layer.
"""

from ratewindow.adapters.counter_store.base import AbstractCounterStore, CounterResult
from ratewindow.adapters.counter_store.factory import create_counter_store
from ratewindow.adapters.counter_store.in_memory import InMemoryCounterStore
from ratewindow.adapters.counter_store.redis_store import RedisCounterStore

__all__ = [
    "AbstractCounterStore",
    "CounterResult",
    "InMemoryCounterStore",
    "RedisCounterStore",
    "create_counter_store",
]
