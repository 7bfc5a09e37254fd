"""Distributed locks over a shared key-value store with TTL leases."""

from .core import (
    AcquireTimeoutError,
    InMemoryBackend,
    LeaseBackend,
    Lock,
    LockError,
    LockManager,
    LockOptions,
    LockSettings,
    LostLockError,
    RedisBackend,
    RedisLockManager,
    acquire_once,
    acquire_with_retry,
)

__all__ = [
    "__version__",
    "AcquireTimeoutError",
    "InMemoryBackend",
    "LeaseBackend",
    "Lock",
    "LockError",
    "LockManager",
    "LockOptions",
    "LockSettings",
    "LostLockError",
    "RedisBackend",
    "RedisLockManager",
    "acquire_once",
    "acquire_with_retry",
]

__version__ = "0.1.0"
