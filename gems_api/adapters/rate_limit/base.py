"""Window store interfaces.

The limiter depends on this abstraction (not on a concrete client) so the
shared Redis store can be swapped for the in-memory store in development and
tests without touching the limiter or the HTTP layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class WindowOutcome:
    """Result of one atomic prune/count/append pass over an identifier's window.

    Attributes:
        accepted: Whether a new entry was recorded.
        count: Entries inside the window before this call's entry was added.
        oldest_ms: Timestamp (ms) of the oldest surviving entry, if any.
    """

    accepted: bool
    count: int
    oldest_ms: int | None


class AbstractWindowStore(ABC):
    """Interface for sliding-window stores."""

    name: str = "abstract"

    @abstractmethod
    async def hit(
        self,
        key: str,
        *,
        now_ms: int,
        window_ms: int,
        limit: int,
        member: str,
    ) -> WindowOutcome:
        """Atomically prune, count and conditionally record an entry.

        Entries with a timestamp strictly older than ``now_ms - window_ms``
        are removed first. If fewer than ``limit`` entries remain, ``member``
        is recorded with score ``now_ms`` and the key expires after
        ``window_ms`` of inactivity.

        Args:
            key: Identifier (without the store key prefix).
            now_ms: Current time in UNIX milliseconds.
            window_ms: Window size in milliseconds.
            limit: Maximum entries allowed in the window.
            member: Unique value for the new entry.

        Returns:
            WindowOutcome describing the decision.

        Raises:
            RateLimitStoreError: If the store cannot be reached.
        """
        raise NotImplementedError

    @abstractmethod
    async def ping(self) -> bool:
        """Return True when the store answers; never raises."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release connections held by the store."""
        return None
