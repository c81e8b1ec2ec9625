"""Factory for building the configured window store."""

from __future__ import annotations

import logging

from redis.asyncio import Redis

from gems_api.adapters.rate_limit.base import AbstractWindowStore
from gems_api.adapters.rate_limit.in_memory import InMemoryWindowStore
from gems_api.adapters.rate_limit.redis_store import RedisWindowStore
from gems_api.core.config import RateLimitStoreSettings, settings
from gems_api.core.errors import ValidationAppError

logger = logging.getLogger(__name__)


def create_window_store(
    store_settings: RateLimitStoreSettings | None = None,
) -> AbstractWindowStore | None:
    """Instantiate the window store selected by configuration.

    Args:
        store_settings: Store settings; defaults to the global settings.

    Returns:
        The configured store, or None when no shared store is configured
        (the limiter then passes every check through).

    Raises:
        ValidationAppError: If the backend name is unknown.
    """
    cfg = store_settings or settings.rate_limit
    backend = cfg.backend.lower()

    if backend == "redis":
        if not cfg.redis_url:
            logger.warning(
                "rate_limit.store_not_configured",
                extra={"backend": backend, "hint": "set REDIS_URL to enforce limits"},
            )
            return None
        client = Redis.from_url(
            cfg.redis_url,
            socket_connect_timeout=cfg.connect_timeout_seconds,
            socket_timeout=cfg.operation_timeout_seconds,
        )
        return RedisWindowStore(client, key_prefix=cfg.key_prefix)

    if backend == "memory":
        logger.info("rate_limit.store_in_memory", extra={"backend": backend})
        return InMemoryWindowStore(key_prefix=cfg.key_prefix)

    if backend == "none":
        return None

    raise ValidationAppError(
        code="rate_limit_unknown_backend",
        message=(
            f"Unknown rate limit backend: '{cfg.backend}'. "
            "Supported backends: redis, memory, none"
        ),
    )
