"""Store capability interface and the lock factory built on top of it."""

from __future__ import annotations

from typing import Any, Optional, Protocol

from leaselock.core.lock import Lock, LockLostCallback
from leaselock.core.models import LockOptions


class LeaseBackend(Protocol):
    """Atomic primitives a key-value store must offer to host leases.

    Every method compares against ``value`` atomically on the store side and
    the store must drop keys on its own once their TTL elapses.
    """

    async def create(self, key: str, value: str, ttl_ms: int) -> bool:
        """Set ``key`` to ``value`` with a TTL only if it does not exist."""
        ...

    async def extend(self, key: str, value: str, ttl_ms: int) -> bool:
        """Reset the TTL of ``key`` only if it currently holds ``value``."""
        ...

    async def delete(self, key: str, value: str) -> bool:
        """Remove ``key`` only if it currently holds ``value``."""
        ...


class LockManager:
    """Builds :class:`Lock` instances that share a backend, key prefix and defaults."""

    def __init__(
        self,
        backend: LeaseBackend,
        *,
        key_prefix: str = "mutex:",
        defaults: Optional[LockOptions] = None,
    ) -> None:
        self.backend = backend
        self.key_prefix = key_prefix
        self.defaults = defaults or LockOptions()

    def key_for(self, name: str) -> str:
        return f"{self.key_prefix}{name}"

    def lock(
        self,
        name: str,
        *,
        on_lock_lost: Optional[LockLostCallback] = None,
        **options: Any,
    ) -> Lock:
        """Return a new, unacquired lock for ``name``."""
        return Lock(
            self.backend,
            self.key_for(name),
            options=self.defaults,
            on_lock_lost=on_lock_lost,
            **options,
        )

    def adopt(
        self,
        name: str,
        identifier: str,
        *,
        on_lock_lost: Optional[LockLostCallback] = None,
        **options: Any,
    ) -> Lock:
        """Return a lock bound to a lease another actor already created."""
        return Lock(
            self.backend,
            self.key_for(name),
            options=self.defaults,
            on_lock_lost=on_lock_lost,
            externally_acquired_identifier=identifier,
            **options,
        )

    async def close(self) -> None:
        """Release backend resources. Subclasses owning a connection override this."""
