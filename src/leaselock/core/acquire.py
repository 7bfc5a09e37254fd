"""Lease acquisition: a single conditional create, or polling until a deadline."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_result,
    stop_after_attempt,
    stop_before_delay,
    wait_fixed,
)

from leaselock.utils.logging import get_logger

if TYPE_CHECKING:
    from leaselock.core.locks import LeaseBackend


logger = get_logger("leaselock.acquire")


def _not_acquired(acquired: bool) -> bool:
    return not acquired


def _timed_out(retry_state: RetryCallState) -> bool:
    key = retry_state.args[1] if len(retry_state.args) > 1 else None
    logger.debug(
        "%s %s timeout after %d attempts",
        key,
        retry_state.kwargs.get("identifier"),
        retry_state.attempt_number,
    )
    return False


async def acquire_once(
    backend: LeaseBackend,
    key: str,
    *,
    identifier: str,
    lock_timeout_ms: int,
) -> bool:
    """Make one attempt to create ``key`` with ``identifier`` as its value.

    Never sleeps and never retries; returns True iff the key was newly created.
    """
    logger.debug("%s %s attempt", key, identifier)
    created = await backend.create(key, identifier, lock_timeout_ms)
    if created:
        logger.debug("%s %s acquired", key, identifier)
        return True
    return False


async def acquire_with_retry(
    backend: LeaseBackend,
    key: str,
    *,
    identifier: str,
    lock_timeout_ms: int,
    acquire_timeout_ms: int,
    retry_interval_ms: int,
    acquire_attempts_limit: Optional[int] = None,
) -> bool:
    """Poll ``acquire_once`` until it succeeds or a bound is hit.

    The loop gives up once the next attempt would start after
    ``acquire_timeout_ms`` or after ``acquire_attempts_limit`` failed attempts,
    whichever comes first. Backend errors are not retried.
    """
    stop = stop_before_delay(acquire_timeout_ms / 1000)
    if acquire_attempts_limit is not None:
        stop = stop | stop_after_attempt(acquire_attempts_limit)

    retrying = AsyncRetrying(
        stop=stop,
        wait=wait_fixed(retry_interval_ms / 1000),
        retry=retry_if_result(_not_acquired),
        retry_error_callback=_timed_out,
    )
    return await retrying(
        acquire_once,
        backend,
        key,
        identifier=identifier,
        lock_timeout_ms=lock_timeout_ms,
    )
