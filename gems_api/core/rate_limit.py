"""Rate limiting wiring for FastAPI routes.

This module connects the sliding-window limiter to the HTTP layer.

Design goals:
- Minimal coupling: routes depend on a dependency function only.
- Injected store: the limiter lives on ``app.state`` and is built by the app
  factory, so tests swap in an in-memory store without patching imports.
- Limits are resolved here, at the call site, from the policy table.

Identifiers are the route's category prefix plus the client IP, taken from
the first ``X-Forwarded-For`` entry when the app runs behind a proxy.
"""

from __future__ import annotations

import logging
from typing import Annotated, Awaitable, Callable

from fastapi import Depends, Request, Response

from gems_api.adapters.rate_limit.factory import create_window_store
from gems_api.core.config import RateLimitStoreSettings, settings
from gems_api.core.errors import RateLimitExceededError
from gems_api.core.rate_limit_policies import RateLimitRoute, get_policy
from gems_api.services.action_limits import check_route, rejection_message
from gems_api.services.rate_limiter import RateLimitResult, SlidingWindowRateLimiter

logger = logging.getLogger(__name__)

FALLBACK_CLIENT_IP = "127.0.0.1"


def build_rate_limiter(
    store_settings: RateLimitStoreSettings | None = None,
) -> SlidingWindowRateLimiter:
    """Build the limiter and its store from configuration."""

    cfg = store_settings or settings.rate_limit
    return SlidingWindowRateLimiter(
        create_window_store(cfg),
        operation_timeout_seconds=cfg.operation_timeout_seconds,
        max_retries=cfg.max_retries,
    )


def get_rate_limiter(request: Request) -> SlidingWindowRateLimiter:
    """Return the limiter attached to the running application."""

    return request.app.state.rate_limiter


def client_ip(request: Request) -> str:
    """Resolve the client address used as rate limit subject.

    Args:
        request: FastAPI request.

    Returns:
        str: First X-Forwarded-For entry, else the socket peer, else localhost.
    """

    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return FALLBACK_CLIENT_IP


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """Build the X-RateLimit-* headers describing a decision."""

    return {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_seconds),
    }


def raise_for_rejection(route: RateLimitRoute | str, result: RateLimitResult) -> None:
    """Raise RateLimitExceededError when ``result`` is a rejection.

    Raises:
        RateLimitExceededError: Rendered as HTTP 429 by the exception handlers.
    """

    if result.allowed:
        return

    policy_route = RateLimitRoute(route)
    raise RateLimitExceededError(
        code="rate_limit_exceeded",
        message=rejection_message(policy_route, result),
        details={
            "route": policy_route.value,
            "limit": result.limit,
            "remaining": result.remaining,
            "reset_seconds": result.reset_seconds,
        },
    )


def enforce_route_limit(
    route: RateLimitRoute,
) -> Callable[..., Awaitable[RateLimitResult | None]]:
    """Create a dependency enforcing ``route``'s policy per client IP.

    When enabled, consumes one action from the client's budget. Accepted
    requests get X-RateLimit-* response headers; rejected requests raise
    RateLimitExceededError (HTTP 429).

    Usage:
        @router.get("/search", dependencies=[Depends(enforce_route_limit(RateLimitRoute.SEARCH))])
    """

    policy = get_policy(route)

    async def dependency(
        request: Request,
        response: Response,
        limiter: Annotated[SlidingWindowRateLimiter, Depends(get_rate_limiter)],
    ) -> RateLimitResult | None:
        if not settings.app.rate_limit_enabled:
            return None

        result = await check_route(limiter, route, client_ip(request))
        if result.allowed:
            if settings.app.rate_limit_include_headers:
                response.headers.update(rate_limit_headers(result))
            return result

        logger.warning(
            "rate_limit.exceeded",
            extra={
                "route": route.value,
                "path": request.url.path,
                "limit": policy.actions,
                "window_ms": policy.window_ms,
                "retry_after_s": result.reset_seconds,
            },
        )
        raise_for_rejection(route, result)
        return None

    return dependency
