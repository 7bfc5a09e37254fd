"""Lease lifecycle controller: acquire, keep alive, detect loss, release."""

from __future__ import annotations

import asyncio
import inspect
import uuid
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Set, Union

from leaselock.core.acquire import acquire_once, acquire_with_retry
from leaselock.core.errors import AcquireTimeoutError, LostLockError
from leaselock.core.models import LockOptions
from leaselock.utils.logging import get_logger

if TYPE_CHECKING:
    from leaselock.core.locks import LeaseBackend


LockLostCallback = Callable[[LostLockError], Union[None, Awaitable[None]]]

logger = get_logger("leaselock.lock")


def default_on_lock_lost(error: LostLockError) -> None:
    logger.error("%s", error)


class Lock:
    """Distributed lock over a single store key.

    A held lease is kept alive by a background task that extends its TTL every
    ``refresh_interval_ms``. When an extension reports that the key is gone or
    owned by another identifier, the lock flips to not-acquired, stops renewing
    and calls ``on_lock_lost`` with a :class:`LostLockError`.

    Passing ``externally_acquired_identifier`` adopts a lease that some other
    actor already created: the first acquisition extends it instead of trying
    to create it.
    """

    def __init__(
        self,
        backend: "LeaseBackend",
        key: str,
        *,
        options: Optional[LockOptions] = None,
        on_lock_lost: Optional[LockLostCallback] = None,
        externally_acquired_identifier: Optional[str] = None,
        kind: str = "mutex",
        **option_overrides: Any,
    ) -> None:
        self._backend = backend
        self._key = key
        self._kind = kind
        self._options = (options or LockOptions()).merged(**option_overrides)
        self._identifier = externally_acquired_identifier or str(uuid.uuid4())
        self._acquired_externally = bool(externally_acquired_identifier)
        self._acquired = False
        self._refreshing = False
        self._on_lock_lost = on_lock_lost or default_on_lock_lost
        self._refresh_task: Optional[asyncio.Task[None]] = None
        self._tick_tasks: Set[asyncio.Task[None]] = set()
        # Serializes renewal, update and release; renewal ticks only try it.
        self._guard = asyncio.Lock()

    @property
    def key(self) -> str:
        return self._key

    @property
    def kind(self) -> str:
        return self._kind

    @property
    def identifier(self) -> str:
        return self._identifier

    @property
    def options(self) -> LockOptions:
        return self._options

    @property
    def is_acquired(self) -> bool:
        return self._acquired

    @property
    def is_acquired_externally(self) -> bool:
        return self._acquired_externally

    @property
    def is_refreshing(self) -> bool:
        return self._refreshing

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(kind={self._kind!r}, key={self._key!r}, "
            f"identifier={self._identifier!r}, acquired={self._acquired})"
        )

    async def __aenter__(self) -> "Lock":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.release()

    def _start_refresh(self) -> None:
        self.stop_refresh()
        interval = self._options.resolved_refresh_interval_ms() / 1000
        self._refresh_task = asyncio.create_task(
            self._refresh_loop(interval), name=f"leaselock-refresh-{self._key}"
        )

    def stop_refresh(self) -> None:
        """Cancel the background renewal task, if one is running."""
        if self._refresh_task is None:
            return
        logger.debug(
            "clear refresh task %s (key: %s, identifier: %s)", self._kind, self._key, self._identifier
        )
        self._refresh_task.cancel()
        self._refresh_task = None

    async def _refresh_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            # Each tick runs on its own so a slow store call never shifts the cadence.
            tick = asyncio.create_task(self._process_refresh())
            self._tick_tasks.add(tick)
            tick.add_done_callback(self._tick_tasks.discard)

    async def _process_refresh(self) -> None:
        if self._guard.locked():
            logger.debug(
                "already refreshing %s (key: %s, identifier: %s) (skip)", self._kind, self._key, self._identifier
            )
            return
        async with self._guard:
            if not self._acquired:
                return
            self._refreshing = True
            try:
                logger.debug("refresh %s (key: %s, identifier: %s)", self._kind, self._key, self._identifier)
                try:
                    refreshed = await self._backend.extend(
                        self._key, self._identifier, self._options.lock_timeout_ms
                    )
                except Exception as exc:
                    logger.warning("refresh %s failed (key: %s): %s", self._kind, self._key, exc)
                    refreshed = False
            finally:
                self._refreshing = False
            if refreshed:
                return
            error = self._mark_lost()
        await self._notify_lost(error)

    def _mark_lost(self) -> LostLockError:
        self._acquired = False
        self.stop_refresh()
        return LostLockError(self._key, self._kind)

    async def _notify_lost(self, error: LostLockError) -> None:
        logger.warning("%s (identifier: %s)", error, self._identifier)
        try:
            result = self._on_lock_lost(error)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("on_lock_lost callback failed for %s %s", self._kind, self._key)

    async def acquire(self) -> None:
        """Acquire the lock or raise :class:`AcquireTimeoutError`."""
        logger.debug("acquire %s (key: %s)", self._kind, self._key)
        if not await self.try_acquire():
            raise AcquireTimeoutError(self._key, self._kind)

    async def try_acquire(self) -> bool:
        """Acquire the lock, polling until the configured bounds are hit."""
        logger.debug("tryAcquire %s (key: %s)", self._kind, self._key)
        return await self._try_acquire(once=False)

    async def try_acquire_once(self) -> bool:
        """Acquire the lock with a single non-blocking attempt."""
        logger.debug("tryAcquireOnce %s (key: %s)", self._kind, self._key)
        return await self._try_acquire(once=True)

    async def _try_acquire(self, *, once: bool) -> bool:
        options = self._options
        if self._acquired_externally:
            acquired = await self._backend.extend(self._key, self._identifier, options.lock_timeout_ms)
        elif once:
            acquired = await acquire_once(
                self._backend,
                self._key,
                identifier=self._identifier,
                lock_timeout_ms=options.lock_timeout_ms,
            )
        else:
            acquired = await acquire_with_retry(
                self._backend,
                self._key,
                identifier=self._identifier,
                lock_timeout_ms=options.lock_timeout_ms,
                acquire_timeout_ms=options.acquire_timeout_ms,
                retry_interval_ms=options.retry_interval_ms,
                acquire_attempts_limit=options.acquire_attempts_limit,
            )
        if not acquired:
            return False
        self._acquired = True
        self._acquired_externally = False
        if options.resolved_refresh_interval_ms() > 0:
            self._start_refresh()
        return True

    async def update(self, new_timeout_ms: int) -> None:
        """Replace the lease TTL, provided the key still holds our identifier.

        A lease that turns out to be gone is handled like a failed renewal:
        ``on_lock_lost`` fires and nothing is raised.
        """
        logger.debug("update %s (key: %s) to %d ms", self._kind, self._key, new_timeout_ms)
        new_options = self._options.merged(lock_timeout_ms=new_timeout_ms)
        async with self._guard:
            updated = await self._backend.extend(self._key, self._identifier, new_timeout_ms)
            if updated:
                self._options = new_options
                if self._refresh_task is not None and new_options.refresh_interval_is_derived:
                    self._start_refresh()
                return
            if not self._acquired:
                logger.debug("update %s (key: %s) on a lock that is not held", self._kind, self._key)
                return
            error = self._mark_lost()
        await self._notify_lost(error)

    async def release(self) -> None:
        """Stop renewing and delete the key if it still holds our identifier.

        Safe to call repeatedly; only the first call after an acquisition
        touches the store.
        """
        logger.debug("release %s (key: %s, identifier: %s)", self._kind, self._key, self._identifier)
        self.stop_refresh()
        async with self._guard:
            try:
                if self._acquired or self._acquired_externally:
                    await self._backend.delete(self._key, self._identifier)
            finally:
                self._acquired = False
                self._acquired_externally = False
