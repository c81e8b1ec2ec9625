"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from gems_api.core.config import AppSettings, LogSettings, RateLimitStoreSettings


def test_store_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("RATE_LIMIT_BACKEND", "RATE_LIMIT_REDIS_URL", "REDIS_URL"):
        monkeypatch.delenv(name, raising=False)

    cfg = RateLimitStoreSettings()

    assert cfg.backend == "redis"
    assert cfg.redis_url is None
    assert cfg.key_prefix == "rate-limit:"
    assert cfg.max_retries == 1


def test_store_url_read_from_redis_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("RATE_LIMIT_REDIS_URL", raising=False)
    monkeypatch.setenv("REDIS_URL", "redis://cache:6379/1")

    assert RateLimitStoreSettings().redis_url == "redis://cache:6379/1"


def test_prefixed_store_url_wins(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RATE_LIMIT_REDIS_URL", "redis://primary:6379/0")
    monkeypatch.setenv("REDIS_URL", "redis://fallback:6379/0")

    assert RateLimitStoreSettings().redis_url == "redis://primary:6379/0"


@pytest.mark.parametrize(
    "name, value",
    [
        ("RATE_LIMIT_MAX_RETRIES", "2"),
        ("RATE_LIMIT_OPERATION_TIMEOUT_SECONDS", "0"),
    ],
)
def test_store_settings_bounds(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ValidationError):
        RateLimitStoreSettings()


def test_app_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_RATE_LIMIT_ENABLED", "false")
    monkeypatch.setenv("APP_API_KEYS", "a,b")

    cfg = AppSettings()

    assert cfg.rate_limit_enabled is False
    assert cfg.rate_limit_include_headers is True
    assert cfg.api_keys == "a,b"


def test_log_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_FORMAT", "plain")
    monkeypatch.setenv("LOG_REQUEST_ID_HEADER", "X-Correlation-ID")

    cfg = LogSettings()

    assert cfg.format == "plain"
    assert cfg.request_id_header == "X-Correlation-ID"


def test_server_address_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_HOST", "0.0.0.0")
    monkeypatch.setenv("APP_PORT", "9000")

    cfg = AppSettings()

    assert (cfg.host, cfg.port) == ("0.0.0.0", 9000)
