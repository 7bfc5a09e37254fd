"""Runtime settings loader."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import BaseModel, Field, ValidationError

from leaselock.core.models import LockOptions
from leaselock.utils.env import get_int_env


DEFAULT_REDIS_URL = "redis://localhost:6379/0"

_OPTION_ENV = {
    "lock_timeout_ms": "LEASELOCK_LOCK_TIMEOUT_MS",
    "acquire_timeout_ms": "LEASELOCK_ACQUIRE_TIMEOUT_MS",
    "acquire_attempts_limit": "LEASELOCK_ACQUIRE_ATTEMPTS_LIMIT",
    "retry_interval_ms": "LEASELOCK_RETRY_INTERVAL_MS",
    "refresh_interval_ms": "LEASELOCK_REFRESH_INTERVAL_MS",
}


class LockSettings(BaseModel):
    redis_url: str = DEFAULT_REDIS_URL
    key_prefix: str = "mutex:"
    lock: LockOptions = Field(default_factory=LockOptions)

    @classmethod
    def from_file(cls, path: Path) -> "LockSettings":
        data = yaml.safe_load(path.read_text()) or {}
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Invalid lock settings: {exc}") from exc

    @classmethod
    def from_env(cls) -> "LockSettings":
        data: Dict[str, Any] = {}
        if os.getenv("LEASELOCK_REDIS_URL"):
            data["redis_url"] = os.environ["LEASELOCK_REDIS_URL"]
        if os.getenv("LEASELOCK_KEY_PREFIX") is not None:
            data["key_prefix"] = os.environ["LEASELOCK_KEY_PREFIX"]
        lock: Dict[str, Any] = {}
        for field, env_name in _OPTION_ENV.items():
            value = get_int_env(env_name)
            if value is not None:
                lock[field] = value
        if lock:
            data["lock"] = lock
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Invalid lock settings: {exc}") from exc
