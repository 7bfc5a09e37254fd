"""Lock exception classes."""

from __future__ import annotations


class LockError(Exception):
    """Base exception for all lock errors."""

    def __init__(self, message: str, *, key: str, kind: str = "mutex") -> None:
        super().__init__(message)
        self.key = key
        self.kind = kind


class AcquireTimeoutError(LockError):
    """Raised by ``Lock.acquire`` when the lease could not be obtained in time."""

    def __init__(self, key: str, kind: str = "mutex") -> None:
        super().__init__(f"Acquire {kind} {key} timeout", key=key, kind=kind)


class LostLockError(LockError):
    """Passed to ``on_lock_lost`` when a held lease is no longer ours."""

    def __init__(self, key: str, kind: str = "mutex") -> None:
        super().__init__(f"Lost {kind} for key {key}", key=key, kind=kind)
