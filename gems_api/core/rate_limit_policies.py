"""Per-route rate limit policies.

Limits are resolved by callers from this table and passed to the limiter;
the limiter itself knows nothing about routes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from gems_api.core.errors import ValidationAppError

_RETRY_MESSAGE = "Too many requests. Please wait {reset} seconds before trying again."


class RateLimitRoute(str, Enum):
    """Call sites that share a quota."""

    SEARCH = "search"
    DEFAULT = "default"
    COMMENT = "comment"
    VOTE = "vote"
    UPVOTE = "upvote"
    UPVOTE_ENTITY = "upvote-entity"


@dataclass(frozen=True)
class RateLimitPolicy:
    """Number of actions allowed per trailing window for one route.

    Attributes:
        actions: Maximum actions per window.
        window_ms: Window size in milliseconds.
        prefix: Category prefix prepended to the subject to build identifiers.
        message: User-facing rejection message template. Placeholders:
            ``{reset}``, ``{actions}``, ``{minutes}``, ``{seconds}``.
    """

    actions: int
    window_ms: int
    prefix: str
    message: str = _RETRY_MESSAGE

    def __post_init__(self) -> None:
        if self.actions < 1:
            raise ValueError("actions must be >= 1")
        if self.window_ms < 1:
            raise ValueError("window_ms must be >= 1")

    @property
    def window_minutes(self) -> int:
        return self.window_ms // 60_000

    @property
    def window_seconds(self) -> int:
        return self.window_ms // 1000

    def identifier(self, subject: str) -> str:
        return f"{self.prefix}{subject}"

    def format_message(self, reset_seconds: int) -> str:
        return self.message.format(
            reset=reset_seconds,
            actions=self.actions,
            minutes=self.window_minutes,
            seconds=self.window_seconds,
        )


RATE_LIMIT_POLICIES: dict[RateLimitRoute, RateLimitPolicy] = {
    RateLimitRoute.SEARCH: RateLimitPolicy(
        actions=15,
        window_ms=60 * 1000,
        prefix="search:",
    ),
    RateLimitRoute.DEFAULT: RateLimitPolicy(
        actions=10,
        window_ms=60 * 1000,
        prefix="api:",
    ),
    RateLimitRoute.COMMENT: RateLimitPolicy(
        actions=5,
        window_ms=10 * 60 * 1000,
        prefix="comment:",
        message=(
            "You've posted too many comments. "
            "You can comment again in {reset} seconds."
        ),
    ),
    RateLimitRoute.VOTE: RateLimitPolicy(
        actions=30,
        window_ms=5 * 60 * 1000,
        prefix="vote:",
        message="Too many votes. You can vote again in {reset} seconds.",
    ),
    RateLimitRoute.UPVOTE: RateLimitPolicy(
        actions=100,
        window_ms=5 * 60 * 1000,
        prefix="upvote:",
        message=(
            "Anti-Spam Squad here: {actions} upvotes in {minutes} minutes maxed out! "
            "Retry in {reset} seconds."
        ),
    ),
    # Cooldown between toggles of the same entity, keyed by "<user>:<entity>"
    RateLimitRoute.UPVOTE_ENTITY: RateLimitPolicy(
        actions=1,
        window_ms=2 * 1000,
        prefix="upvote-entity:",
        message="Anti-Spam Squad here: {seconds}-second wait required for vote changes",
    ),
}


def get_policy(route: RateLimitRoute | str) -> RateLimitPolicy:
    """Resolve the policy for a route name.

    Raises:
        ValidationAppError: If the route is not in the table.
    """
    try:
        key = RateLimitRoute(route)
    except ValueError as exc:
        raise ValidationAppError(
            code="unknown_rate_limit_route",
            message=f"Unknown rate limit route: '{route}'",
            details={"hint": f"Supported routes: {', '.join(r.value for r in RateLimitRoute)}"},
        ) from exc
    return RATE_LIMIT_POLICIES[key]
