from __future__ import annotations

from datetime import timedelta

import pytest
from pydantic import ValidationError

from quotecache_api.config.settings import Environment, Settings, get_settings


def test_settings_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Settings should hydrate deterministically from environment variables."""
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("REDIS_URL", "redis://cache:6379/2")
    monkeypatch.setenv("QUOTE_TTL_S", "30")
    monkeypatch.setenv("MARKET_SUFFIX", ".bo")
    monkeypatch.setenv("CACHE_SINGLEFLIGHT_ENABLED", "true")

    s = Settings(_env_file=None)  # type: ignore[call-arg]

    assert s.environment == Environment.TEST
    assert s.redis_url == "redis://cache:6379/2"
    assert s.quote_ttl_s == 30
    assert s.market_suffix == ".BO"
    assert s.cache_singleflight_enabled is True


def test_defaults(settings: Settings) -> None:
    assert settings.cache_namespace == "quotecache:v1"
    assert settings.market_suffix == ".NS"
    assert settings.quote_ttl_s == 60
    assert settings.day_series_ttl_s == 900
    assert settings.exchange_tz.utcoffset(None) == timedelta(hours=5, minutes=30)


@pytest.mark.parametrize(
    "overrides",
    [
        {"quote_ttl_s": 61},
        {"quote_ttl_s": 0},
        {"day_series_ttl_s": 59},
        {"exchange_utc_offset": "5:30"},
        {"market_suffix": ".N*"},
        {"cache_scan_page_size": 0},
    ],
)
def test_out_of_band_values_are_rejected(overrides: dict) -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **overrides)  # type: ignore[call-arg]


def test_negative_offset_parses() -> None:
    s = Settings(_env_file=None, exchange_utc_offset="-04:00")  # type: ignore[call-arg]
    assert s.exchange_tz.utcoffset(None) == -timedelta(hours=4)


def test_settings_forbid_extra_fields() -> None:
    """Model should reject unexpected fields."""
    with pytest.raises((ValidationError, TypeError)):
        Settings.model_validate({"environment": "test", "unexpected_field": "boom"})


def test_get_settings_is_cached_and_wraps_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    get_settings.cache_clear()
    try:
        monkeypatch.setenv("QUOTE_TTL_S", "999")
        with pytest.raises(RuntimeError):
            get_settings()

        monkeypatch.delenv("QUOTE_TTL_S")
        get_settings.cache_clear()
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()


def test_singleflight_lock_must_not_outlive_quote_ttl() -> None:
    with pytest.raises(ValidationError):
        Settings(  # type: ignore[call-arg]
            _env_file=None,
            quote_ttl_s=1,
            cache_singleflight_enabled=True,
            cache_singleflight_lock_ttl_s=5,
        )

    # The bound only applies when single-flight is on.
    s = Settings(  # type: ignore[call-arg]
        _env_file=None, quote_ttl_s=1, cache_singleflight_lock_ttl_s=5
    )
    assert s.cache_singleflight_enabled is False
