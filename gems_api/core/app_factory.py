"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers, the
rate limiter and its store) so tests can build isolated instances.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from gems_api.api.routes import health_router, rate_limits_router
from gems_api.core.config import settings
from gems_api.core.exception_handlers import setup_exception_handlers
from gems_api.core.logging import configure_logging
from gems_api.core.middleware import request_id_middleware
from gems_api.core.openapi import apply_openapi_customizations
from gems_api.core.rate_limit import build_rate_limiter
from gems_api.services.rate_limiter import SlidingWindowRateLimiter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    limiter: SlidingWindowRateLimiter = app.state.rate_limiter
    logger.info("app.startup", extra={"rate_limit_backend": limiter.backend})
    try:
        yield
    finally:
        if limiter.store is not None:
            await limiter.store.close()
        logger.info("app.shutdown")


def create_app(rate_limiter: SlidingWindowRateLimiter | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        rate_limiter: Limiter to serve; built from settings when omitted.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Gems of India Rate Limit API",
        description=(
            "Sliding-window rate limiting for the Gems of India platform: "
            "searches, comments, votes and upvotes are counted per IP or user "
            "over a trailing window in a shared Redis store. Quota checks "
            "require X-API-Key; rejected checks answer 429 with Retry-After."
        ),
        version="0.1.0",
        lifespan=_lifespan,
    )

    # Built eagerly: the Redis client only connects on first use.
    if rate_limiter is None:
        rate_limiter = build_rate_limiter(settings.rate_limit)
    app.state.rate_limiter = rate_limiter

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(rate_limits_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
