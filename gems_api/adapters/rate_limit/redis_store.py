"""Redis-backed sliding-window store.

Each identifier maps to a sorted set whose scores are entry timestamps in
milliseconds. The prune/count/append/expire sequence runs as a single Lua
script so concurrent callers never both take the last slot in a window.
"""

from __future__ import annotations

import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError

from gems_api.adapters.rate_limit.base import AbstractWindowStore, WindowOutcome
from gems_api.core.errors import RateLimitStoreError

logger = logging.getLogger(__name__)


# KEYS[1] = window key
# ARGV = now_ms, window_ms, limit, member
SLIDING_WINDOW_SCRIPT = """
local key = KEYS[1]
local now = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local limit = tonumber(ARGV[3])
local member = ARGV[4]

redis.call('ZREMRANGEBYSCORE', key, '-inf', '(' .. (now - window))
local count = redis.call('ZCARD', key)

-- Replay of an attempt whose reply was lost: already recorded
if redis.call('ZSCORE', key, member) then
    local recorded = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
    return {1, count - 1, tonumber(recorded[2])}
end

if count >= limit then
    local oldest = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
    if oldest[2] then
        return {0, count, tonumber(oldest[2])}
    end
    return {0, count, -1}
end

redis.call('ZADD', key, now, member)
redis.call('PEXPIRE', key, window)

local first = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
return {1, count, tonumber(first[2])}
"""


class RedisWindowStore(AbstractWindowStore):
    """Sliding-window store shared by every process through Redis."""

    name = "redis"

    def __init__(self, client: Redis, *, key_prefix: str = "rate-limit:") -> None:
        self._client = client
        self._key_prefix = key_prefix
        self._script = client.register_script(SLIDING_WINDOW_SCRIPT)

    @property
    def client(self) -> Redis:
        return self._client

    def _key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    async def hit(
        self,
        key: str,
        *,
        now_ms: int,
        window_ms: int,
        limit: int,
        member: str,
    ) -> WindowOutcome:
        try:
            reply = await self._script(
                keys=[self._key(key)],
                args=[now_ms, window_ms, limit, member],
            )
        except (RedisError, OSError) as exc:
            raise RateLimitStoreError(
                code="rate_limit_store_unavailable",
                message="Rate limit store request failed",
                details={"backend": self.name, "error_type": type(exc).__name__},
            ) from exc

        accepted, count, oldest = (int(value) for value in reply)
        return WindowOutcome(
            accepted=bool(accepted),
            count=count,
            oldest_ms=oldest if oldest >= 0 else None,
        )

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except (RedisError, OSError) as exc:
            logger.warning(
                "rate_limit.store_ping_failed",
                extra={"backend": self.name, "error_type": type(exc).__name__},
            )
            return False

    async def close(self) -> None:
        await self._client.aclose()
