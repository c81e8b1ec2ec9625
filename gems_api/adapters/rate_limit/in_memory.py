"""In-memory sliding-window store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Coroutine-safe: the prune/count/append sequence runs under an asyncio lock.
- Mirrors the Redis store's semantics (exclusive window start, key expiry
  after a full window of inactivity, replays of an already recorded member),
  which makes it the test double for the limiter.
"""

from __future__ import annotations

import asyncio
import bisect
from dataclasses import dataclass, field

from gems_api.adapters.rate_limit.base import AbstractWindowStore, WindowOutcome


@dataclass
class _WindowState:
    timestamps: list[int] = field(default_factory=list)
    members: list[str] = field(default_factory=list)
    expires_at_ms: int | None = None


class InMemoryWindowStore(AbstractWindowStore):
    """Sliding-window store kept in a process-local dict."""

    name = "memory"

    def __init__(self, *, key_prefix: str = "rate-limit:") -> None:
        self._key_prefix = key_prefix
        self._lock = asyncio.Lock()
        self._state_by_key: dict[str, _WindowState] = {}

    def _key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    def _get_state(self, key: str, now_ms: int) -> _WindowState:
        """Get the live state for key, dropping it first when its TTL has passed."""
        state = self._state_by_key.get(key)
        if state is not None and state.expires_at_ms is not None and state.expires_at_ms < now_ms:
            del self._state_by_key[key]
            state = None
        if state is None:
            state = _WindowState()
            self._state_by_key[key] = state
        return state

    def entries(self, key: str) -> list[tuple[str, int]]:
        """Return (member, timestamp) pairs recorded for an identifier."""
        state = self._state_by_key.get(self._key(key))
        if state is None:
            return []
        return list(zip(state.members, state.timestamps))

    def __len__(self) -> int:
        return len(self._state_by_key)

    async def hit(
        self,
        key: str,
        *,
        now_ms: int,
        window_ms: int,
        limit: int,
        member: str,
    ) -> WindowOutcome:
        full_key = self._key(key)

        async with self._lock:
            state = self._get_state(full_key, now_ms)

            # Drop entries strictly older than the window start
            cutoff = bisect.bisect_left(state.timestamps, now_ms - window_ms)
            if cutoff:
                del state.timestamps[:cutoff]
                del state.members[:cutoff]

            count = len(state.timestamps)
            if member in state.members:
                # Replay of an attempt that was recorded but not acknowledged
                return WindowOutcome(accepted=True, count=count - 1, oldest_ms=state.timestamps[0])

            if count >= limit:
                oldest = state.timestamps[0] if state.timestamps else None
                return WindowOutcome(accepted=False, count=count, oldest_ms=oldest)

            position = bisect.bisect_right(state.timestamps, now_ms)
            state.timestamps.insert(position, now_ms)
            state.members.insert(position, member)
            state.expires_at_ms = now_ms + window_ms

            return WindowOutcome(accepted=True, count=count, oldest_ms=state.timestamps[0])

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        async with self._lock:
            self._state_by_key.clear()
