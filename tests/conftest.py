"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It sets TESTING before settings are imported so no .env file is loaded,
and points the rate limiter at the in-memory store.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"

os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")
os.environ.setdefault("RATE_LIMIT_BACKEND", "memory")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from unittest.mock import Mock  # noqa: E402

import pytest  # noqa: E402

from gems_api.adapters.rate_limit.in_memory import InMemoryWindowStore  # noqa: E402
from gems_api.services.rate_limiter import SlidingWindowRateLimiter  # noqa: E402


@pytest.fixture
def clock() -> Mock:
    """Controllable time source returning UNIX seconds."""
    return Mock(return_value=1_700_000_000.0)


@pytest.fixture
def memory_store() -> InMemoryWindowStore:
    return InMemoryWindowStore()


@pytest.fixture
def limiter(memory_store: InMemoryWindowStore, clock: Mock) -> SlidingWindowRateLimiter:
    return SlidingWindowRateLimiter(memory_store, clock=clock)
