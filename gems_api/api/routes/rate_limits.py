"""Quota endpoints consumed by the web front-end.

The front-end asks before running a search, posting a comment or casting a
vote; a 429 answer carries the seconds to wait in ``Retry-After`` and in the
error details.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Body, Depends, Request, Response

from gems_api.core.auth import verify_api_key
from gems_api.core.config import settings
from gems_api.core.rate_limit import (
    client_ip,
    enforce_route_limit,
    get_rate_limiter,
    raise_for_rejection,
    rate_limit_headers,
)
from gems_api.core.rate_limit_policies import RATE_LIMIT_POLICIES, RateLimitRoute
from gems_api.schemas.rate_limit import (
    RateLimitCheckRequest,
    RateLimitCheckResponse,
    RateLimitPolicyResponse,
)
from gems_api.services.action_limits import check_route
from gems_api.services.rate_limiter import SlidingWindowRateLimiter

router = APIRouter(tags=["Rate Limits"], dependencies=[Depends(verify_api_key)])


@router.get(
    "/rate-limits",
    response_model=list[RateLimitPolicyResponse],
    dependencies=[Depends(enforce_route_limit(RateLimitRoute.DEFAULT))],
)
async def list_policies() -> list[RateLimitPolicyResponse]:
    """List the configured per-route policies."""

    return [
        RateLimitPolicyResponse(
            route=route.value,
            actions=policy.actions,
            window_ms=policy.window_ms,
            prefix=policy.prefix,
        )
        for route, policy in RATE_LIMIT_POLICIES.items()
    ]


@router.post(
    "/rate-limits/{route}",
    response_model=RateLimitCheckResponse,
    responses={429: {"description": "Quota exhausted for this route and subject"}},
)
async def check_quota(
    route: RateLimitRoute,
    request: Request,
    response: Response,
    limiter: Annotated[SlidingWindowRateLimiter, Depends(get_rate_limiter)],
    payload: Annotated[RateLimitCheckRequest | None, Body()] = None,
) -> RateLimitCheckResponse:
    """Consume one action of ``route`` for the given subject.

    Args:
        route: Policy to apply (search, default, comment, vote, upvote,
            upvote-entity).
        payload: Optional body carrying the subject (user id); the client IP
            is used when it is missing.

    Returns:
        RateLimitCheckResponse describing the remaining quota.

    Raises:
        RateLimitExceededError: 429 when the quota is exhausted.
    """

    subject = payload.subject if payload and payload.subject else client_ip(request)
    result = await check_route(limiter, route, subject)
    raise_for_rejection(route, result)

    if settings.app.rate_limit_include_headers:
        response.headers.update(rate_limit_headers(result))

    return RateLimitCheckResponse(
        allowed=result.allowed,
        limit=result.limit,
        remaining=result.remaining,
        reset=result.reset_seconds,
        degraded=result.degraded,
    )
