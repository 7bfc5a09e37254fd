from __future__ import annotations

import pytest

from leaselock.core.models import LockOptions
from leaselock.core.settings import DEFAULT_REDIS_URL, LockSettings
from leaselock.utils.env import get_bool_env, get_int_env


def test_refresh_interval_is_derived_from_lock_timeout():
    options = LockOptions(lock_timeout_ms=1000)
    assert options.refresh_interval_is_derived is True
    assert options.resolved_refresh_interval_ms() == 800

    explicit = LockOptions(lock_timeout_ms=1000, refresh_interval_ms=0)
    assert explicit.refresh_interval_is_derived is False
    assert explicit.resolved_refresh_interval_ms() == 0


def test_merged_options_are_validated():
    base = LockOptions(lock_timeout_ms=2000)
    merged = base.merged(acquire_attempts_limit=3)
    assert merged.lock_timeout_ms == 2000
    assert merged.acquire_attempts_limit == 3
    assert base.merged() is base

    with pytest.raises(ValueError):
        base.merged(lock_timeout_ms=0)
    with pytest.raises(ValueError):
        base.merged(unknown_option=1)


def test_settings_from_file(tmp_path):
    path = tmp_path / "locks.yml"
    path.write_text(
        "redis_url: redis://cache:6379/2\n"
        "key_prefix: 'jobs:'\n"
        "lock:\n"
        "  lock_timeout_ms: 5000\n"
        "  acquire_attempts_limit: 4\n"
    )

    settings = LockSettings.from_file(path)

    assert settings.redis_url == "redis://cache:6379/2"
    assert settings.key_prefix == "jobs:"
    assert settings.lock.lock_timeout_ms == 5000
    assert settings.lock.acquire_attempts_limit == 4
    assert settings.lock.resolved_refresh_interval_ms() == 4000


def test_empty_settings_file_uses_defaults(tmp_path):
    path = tmp_path / "locks.yml"
    path.write_text("")

    settings = LockSettings.from_file(path)

    assert settings.redis_url == DEFAULT_REDIS_URL
    assert settings.lock == LockOptions()


def test_invalid_settings_file(tmp_path):
    path = tmp_path / "locks.yml"
    path.write_text("lock:\n  lock_timeout_ms: -5\n")

    with pytest.raises(ValueError, match="Invalid lock settings"):
        LockSettings.from_file(path)


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("LEASELOCK_REDIS_URL", "redis://env-host:6379/0")
    monkeypatch.setenv("LEASELOCK_KEY_PREFIX", "env:")
    monkeypatch.setenv("LEASELOCK_LOCK_TIMEOUT_MS", "2500")
    monkeypatch.setenv("LEASELOCK_REFRESH_INTERVAL_MS", "0")
    monkeypatch.delenv("LEASELOCK_ACQUIRE_TIMEOUT_MS", raising=False)

    settings = LockSettings.from_env()

    assert settings.redis_url == "redis://env-host:6379/0"
    assert settings.key_prefix == "env:"
    assert settings.lock.lock_timeout_ms == 2500
    assert settings.lock.acquire_timeout_ms == 10000
    assert settings.lock.resolved_refresh_interval_ms() == 0


def test_env_helpers(monkeypatch):
    monkeypatch.setenv("LEASELOCK_FLAG", "off")
    monkeypatch.setenv("LEASELOCK_NUMBER", " 42 ")
    monkeypatch.setenv("LEASELOCK_BAD_NUMBER", "forty")
    monkeypatch.delenv("LEASELOCK_MISSING", raising=False)

    assert get_bool_env("LEASELOCK_FLAG", default=True) is False
    assert get_bool_env("LEASELOCK_MISSING", default=True) is True
    assert get_int_env("LEASELOCK_NUMBER") == 42
    assert get_int_env("LEASELOCK_MISSING", default=7) == 7
    with pytest.raises(ValueError, match="LEASELOCK_BAD_NUMBER"):
        get_int_env("LEASELOCK_BAD_NUMBER")
