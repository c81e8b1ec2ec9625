"""Rate limit checks for the platform's user actions.

Each helper prefixes the subject with the action category (``comment:``,
``vote:`` ...) so quotas of different actions never collide, then applies the
route's policy.
"""

from __future__ import annotations

from gems_api.core.rate_limit_policies import RateLimitRoute, get_policy
from gems_api.services.rate_limiter import RateLimitResult, SlidingWindowRateLimiter


async def check_route(
    limiter: SlidingWindowRateLimiter,
    route: RateLimitRoute | str,
    subject: str,
) -> RateLimitResult:
    """Check one action of ``subject`` against the policy of ``route``."""
    policy = get_policy(route)
    return await limiter.check(policy.identifier(subject), policy.actions, policy.window_ms)


async def check_search_rate_limit(limiter: SlidingWindowRateLimiter, ip: str) -> RateLimitResult:
    return await check_route(limiter, RateLimitRoute.SEARCH, ip)


async def check_default_rate_limit(limiter: SlidingWindowRateLimiter, ip: str) -> RateLimitResult:
    return await check_route(limiter, RateLimitRoute.DEFAULT, ip)


async def check_comment_rate_limit(
    limiter: SlidingWindowRateLimiter, user_id: str
) -> RateLimitResult:
    """Check whether the user may post another comment."""
    return await check_route(limiter, RateLimitRoute.COMMENT, user_id)


async def check_vote_rate_limit(
    limiter: SlidingWindowRateLimiter, user_id: str
) -> RateLimitResult:
    """Check whether the user may like/dislike another comment."""
    return await check_route(limiter, RateLimitRoute.VOTE, user_id)


async def check_upvote_rate_limit(
    limiter: SlidingWindowRateLimiter, user_id: str
) -> RateLimitResult:
    """Check whether the user may toggle another entity upvote."""
    return await check_route(limiter, RateLimitRoute.UPVOTE, user_id)


async def check_upvote_entity_rate_limit(
    limiter: SlidingWindowRateLimiter, user_id: str, entity_id: str
) -> RateLimitResult:
    """Check the cooldown between two upvote toggles of the same entity."""
    return await check_route(limiter, RateLimitRoute.UPVOTE_ENTITY, f"{user_id}:{entity_id}")


def rejection_message(route: RateLimitRoute | str, result: RateLimitResult) -> str:
    """Render the user-facing message for a rejected action."""
    return get_policy(route).format_message(result.reset_seconds)
