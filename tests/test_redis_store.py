"""Tests for the Redis window store with a mocked client."""

from unittest.mock import AsyncMock, Mock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from gems_api.adapters.rate_limit.redis_store import SLIDING_WINDOW_SCRIPT, RedisWindowStore
from gems_api.core.errors import RateLimitStoreError
from gems_api.services.rate_limiter import REASON_STORE_UNAVAILABLE, SlidingWindowRateLimiter

NOW = 1_700_000_000_000


def _client(reply=None, error: Exception | None = None) -> Mock:
    client = Mock()
    script = AsyncMock(return_value=reply, side_effect=error)
    client.register_script.return_value = script
    client.ping = AsyncMock(return_value=True)
    client.aclose = AsyncMock()
    return client


def test_registers_sliding_window_script() -> None:
    client = _client()

    RedisWindowStore(client)

    client.register_script.assert_called_once_with(SLIDING_WINDOW_SCRIPT)


def test_script_prunes_exclusively_and_expires_in_milliseconds() -> None:
    assert "ZREMRANGEBYSCORE" in SLIDING_WINDOW_SCRIPT
    assert "'(' .. (now - window)" in SLIDING_WINDOW_SCRIPT
    assert "PEXPIRE" in SLIDING_WINDOW_SCRIPT


@pytest.mark.asyncio
async def test_hit_passes_prefixed_key_and_arguments() -> None:
    client = _client(reply=[1, 2, NOW - 500])
    store = RedisWindowStore(client, key_prefix="rate-limit:")

    outcome = await store.hit("search:203.0.113.5", now_ms=NOW, window_ms=60_000, limit=15, member="m1")

    script = client.register_script.return_value
    script.assert_awaited_once_with(
        keys=["rate-limit:search:203.0.113.5"],
        args=[NOW, 60_000, 15, "m1"],
    )
    assert outcome.accepted is True
    assert outcome.count == 2
    assert outcome.oldest_ms == NOW - 500


@pytest.mark.asyncio
async def test_hit_parses_rejection_reply() -> None:
    client = _client(reply=[0, 15, NOW - 30_000])
    store = RedisWindowStore(client)

    outcome = await store.hit("k", now_ms=NOW, window_ms=60_000, limit=15, member="m")

    assert outcome.accepted is False
    assert outcome.count == 15
    assert outcome.oldest_ms == NOW - 30_000


@pytest.mark.asyncio
async def test_hit_maps_missing_oldest_to_none() -> None:
    client = _client(reply=[0, 0, -1])
    store = RedisWindowStore(client)

    outcome = await store.hit("k", now_ms=NOW, window_ms=1000, limit=1, member="m")

    assert outcome.oldest_ms is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        RedisConnectionError("Connection refused"),
        RedisTimeoutError("Timeout reading from socket"),
        OSError("Network is unreachable"),
    ],
)
async def test_hit_translates_store_failures(error: Exception) -> None:
    store = RedisWindowStore(_client(error=error))

    with pytest.raises(RateLimitStoreError) as exc_info:
        await store.hit("k", now_ms=NOW, window_ms=1000, limit=1, member="m")

    assert exc_info.value.code == "rate_limit_store_unavailable"
    assert exc_info.value.details["error_type"] == type(error).__name__
    assert exc_info.value.__cause__ is error


@pytest.mark.asyncio
async def test_limiter_fails_open_when_redis_is_down() -> None:
    client = _client(error=RedisConnectionError("Connection refused"))
    limiter = SlidingWindowRateLimiter(RedisWindowStore(client), max_retries=1)

    result = await limiter.check("comment:user-1", 5, 600_000)

    assert result.allowed is True
    assert result.remaining == 1
    assert result.reset_seconds == 0
    assert result.reason == REASON_STORE_UNAVAILABLE
    assert client.register_script.return_value.await_count == 2


@pytest.mark.asyncio
async def test_limiter_reports_reset_from_redis_oldest_entry() -> None:
    client = _client(reply=[0, 3, NOW - 59_000])
    limiter = SlidingWindowRateLimiter(RedisWindowStore(client), clock=lambda: NOW / 1000)

    result = await limiter.check("k", 3, 60_000)

    assert result.allowed is False
    assert result.reset_seconds == 1


@pytest.mark.asyncio
async def test_ping_reports_failure_without_raising() -> None:
    client = _client()
    client.ping = AsyncMock(side_effect=RedisConnectionError("down"))
    store = RedisWindowStore(client)

    assert await store.ping() is False


@pytest.mark.asyncio
async def test_close_closes_client() -> None:
    client = _client()
    store = RedisWindowStore(client)

    await store.close()

    client.aclose.assert_awaited_once()
