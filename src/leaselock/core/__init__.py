"""Lease lifecycle, acquisition protocol and store backends."""

from .acquire import acquire_once, acquire_with_retry
from .errors import AcquireTimeoutError, LockError, LostLockError
from .lock import Lock, LockLostCallback
from .locks import LeaseBackend, LockManager
from .locks_memory import InMemoryBackend
from .locks_redis import RedisBackend, RedisLockManager
from .models import LockOptions
from .settings import LockSettings

__all__ = [
    "acquire_once",
    "acquire_with_retry",
    "AcquireTimeoutError",
    "LockError",
    "LostLockError",
    "Lock",
    "LockLostCallback",
    "LeaseBackend",
    "LockManager",
    "InMemoryBackend",
    "RedisBackend",
    "RedisLockManager",
    "LockOptions",
    "LockSettings",
]
