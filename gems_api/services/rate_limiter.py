"""Sliding-window rate limiter.

Decides whether an identifier (IP address, user id, optionally prefixed with
an action category such as ``search:``) may perform one more action under a
cap of ``limit`` actions per trailing window of ``window_ms`` milliseconds.

State lives in the injected window store only. When no store is configured
the limiter passes every check through, and when the store fails at runtime
it fails open: an outage of the shared store must never block traffic.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import math
import time
import uuid
from dataclasses import dataclass
from typing import Callable

from gems_api.adapters.rate_limit.base import AbstractWindowStore, WindowOutcome
from gems_api.core.errors import RateLimitArgumentError, RateLimitStoreError

logger = logging.getLogger(__name__)

REASON_STORE_NOT_CONFIGURED = "store_not_configured"
REASON_STORE_UNAVAILABLE = "store_unavailable"


@dataclass(frozen=True)
class RateLimitResult:
    """Decision for a single ``check`` call.

    Attributes:
        allowed: Whether the action may proceed.
        limit: Cap that was applied.
        remaining: Actions left in the current window (0 when rejected).
        reset_seconds: Seconds until the caller can act again (rejection) or
            until the window resets (acceptance), rounded up.
        degraded: True when the decision was not enforced by the store.
        reason: Why the decision is degraded, if it is.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_seconds: int
    degraded: bool = False
    reason: str | None = None


def _window_seconds(window_ms: int) -> int:
    return math.ceil(window_ms / 1000)


def _hash_identifier(identifier: str) -> str:
    """Hash the identifier for logging without exposing IPs or user ids."""
    return hashlib.sha256(identifier.encode()).hexdigest()[:16]


def _validate_arguments(identifier: str, limit: int, window_ms: int) -> None:
    if not isinstance(identifier, str) or not identifier:
        raise RateLimitArgumentError(
            code="invalid_rate_limit_identifier",
            message="identifier must be a non-empty string",
        )
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise RateLimitArgumentError(
            code="invalid_rate_limit_limit",
            message=f"limit must be a positive integer, got {limit!r}",
            details={"hint": "check the route policy table"},
        )
    if isinstance(window_ms, bool) or not isinstance(window_ms, int) or window_ms < 1:
        raise RateLimitArgumentError(
            code="invalid_rate_limit_window",
            message=f"window_ms must be a positive integer, got {window_ms!r}",
            details={"hint": "check the route policy table"},
        )


class SlidingWindowRateLimiter:
    """Rate limiter counting actions in a trailing window per identifier.

    Args:
        store: Shared window store, or None to run as a pass-through.
        operation_timeout_seconds: Upper bound for one store round trip.
        max_retries: Retries after a failed store call (0 or 1).
        clock: Time source returning UNIX time in seconds.

    Raises:
        ValueError: If the timeout or retry count is invalid.
    """

    def __init__(
        self,
        store: AbstractWindowStore | None,
        *,
        operation_timeout_seconds: float = 0.5,
        max_retries: int = 1,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if operation_timeout_seconds <= 0:
            raise ValueError("operation_timeout_seconds must be > 0")
        if max_retries not in (0, 1):
            raise ValueError("max_retries must be 0 or 1")

        self._store = store
        self._timeout = operation_timeout_seconds
        self._max_retries = max_retries
        self._clock = clock

        if store is None:
            logger.warning(
                "rate_limit.store_not_configured",
                extra={"mode": "pass_through"},
            )

    @property
    def store(self) -> AbstractWindowStore | None:
        return self._store

    @property
    def backend(self) -> str:
        return self._store.name if self._store is not None else "none"

    async def check(self, identifier: str, limit: int, window_ms: int) -> RateLimitResult:
        """Record one action for ``identifier`` if it fits in the window.

        Args:
            identifier: Key scoping the count (e.g. ``search:203.0.113.5``).
            limit: Maximum actions per window.
            window_ms: Window size in milliseconds.

        Returns:
            RateLimitResult with the decision and quota metadata.

        Raises:
            RateLimitArgumentError: If an argument is empty or non-positive.
                Raised before the store is touched.
        """
        _validate_arguments(identifier, limit, window_ms)

        if self._store is None:
            return RateLimitResult(
                allowed=True,
                limit=limit,
                remaining=limit - 1,
                reset_seconds=_window_seconds(window_ms),
                degraded=True,
                reason=REASON_STORE_NOT_CONFIGURED,
            )

        now_ms = int(self._clock() * 1000)
        member = f"{now_ms}-{uuid.uuid4().hex}"

        try:
            outcome = await self._hit_with_retry(
                self._store, identifier, now_ms, window_ms, limit, member
            )
        except (RateLimitStoreError, asyncio.TimeoutError) as exc:
            logger.warning(
                "rate_limit.store_unavailable",
                extra={
                    "identifier_hash": _hash_identifier(identifier),
                    "backend": self.backend,
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )
            return RateLimitResult(
                allowed=True,
                limit=limit,
                remaining=1,
                reset_seconds=0,
                degraded=True,
                reason=REASON_STORE_UNAVAILABLE,
            )

        return self._build_result(identifier, outcome, now_ms, limit, window_ms)

    async def _hit_with_retry(
        self,
        store: AbstractWindowStore,
        identifier: str,
        now_ms: int,
        window_ms: int,
        limit: int,
        member: str,
    ) -> WindowOutcome:
        attempt = 0
        while True:
            try:
                return await asyncio.wait_for(
                    store.hit(
                        identifier,
                        now_ms=now_ms,
                        window_ms=window_ms,
                        limit=limit,
                        member=member,
                    ),
                    timeout=self._timeout,
                )
            except (RateLimitStoreError, asyncio.TimeoutError):
                if attempt >= self._max_retries:
                    raise
                attempt += 1
                logger.debug(
                    "rate_limit.store_retry",
                    extra={"attempt": attempt, "backend": self.backend},
                )

    def _build_result(
        self,
        identifier: str,
        outcome: WindowOutcome,
        now_ms: int,
        limit: int,
        window_ms: int,
    ) -> RateLimitResult:
        if outcome.accepted:
            # Fixed estimate: the full window, not the age of the oldest entry.
            result = RateLimitResult(
                allowed=True,
                limit=limit,
                remaining=max(0, limit - outcome.count - 1),
                reset_seconds=_window_seconds(window_ms),
            )
            logger.debug(
                "rate_limit.allowed",
                extra={
                    "identifier_hash": _hash_identifier(identifier),
                    "limit": limit,
                    "remaining": result.remaining,
                    "window_ms": window_ms,
                },
            )
            return result

        oldest_ms = outcome.oldest_ms if outcome.oldest_ms is not None else now_ms
        reset_seconds = math.ceil((oldest_ms + window_ms - now_ms) / 1000)
        result = RateLimitResult(
            allowed=False,
            limit=limit,
            remaining=0,
            reset_seconds=min(max(1, reset_seconds), _window_seconds(window_ms)),
        )
        logger.info(
            "rate_limit.rejected",
            extra={
                "identifier_hash": _hash_identifier(identifier),
                "limit": limit,
                "count": outcome.count,
                "window_ms": window_ms,
                "reset_s": result.reset_seconds,
            },
        )
        return result
