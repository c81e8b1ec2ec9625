"""Sliding-window store adapters.

This package provides a small abstraction layer so the limiter runs against
the shared Redis store in production and against a process-local store in
development and tests, without changing the limiter or the API layer.
"""

from gems_api.adapters.rate_limit.base import AbstractWindowStore, WindowOutcome
from gems_api.adapters.rate_limit.factory import create_window_store
from gems_api.adapters.rate_limit.in_memory import InMemoryWindowStore
from gems_api.adapters.rate_limit.redis_store import RedisWindowStore

__all__ = [
    "AbstractWindowStore",
    "InMemoryWindowStore",
    "RedisWindowStore",
    "WindowOutcome",
    "create_window_store",
]
