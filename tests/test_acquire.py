from __future__ import annotations

import time

import pytest

from leaselock.core.acquire import acquire_once, acquire_with_retry
from leaselock.core.locks_memory import InMemoryBackend


class CountingBackend(InMemoryBackend):
    def __init__(self) -> None:
        super().__init__()
        self.create_calls = 0

    async def create(self, key: str, value: str, ttl_ms: int) -> bool:
        self.create_calls += 1
        return await super().create(key, value, ttl_ms)


class BrokenBackend(InMemoryBackend):
    def __init__(self) -> None:
        super().__init__()
        self.create_calls = 0

    async def create(self, key: str, value: str, ttl_ms: int) -> bool:
        self.create_calls += 1
        raise ConnectionError("store unreachable")


@pytest.mark.asyncio
async def test_acquire_once_creates_free_key():
    backend = InMemoryBackend()
    assert await acquire_once(backend, "k", identifier="a", lock_timeout_ms=1000) is True
    assert await backend.get("k") == "a"


@pytest.mark.asyncio
async def test_acquire_once_fails_without_retry_when_held():
    backend = CountingBackend()
    await backend.set("k", "other", 10000)

    assert await acquire_once(backend, "k", identifier="a", lock_timeout_ms=1000) is False
    assert backend.create_calls == 1
    assert await backend.get("k") == "other"


@pytest.mark.asyncio
async def test_acquire_with_retry_returns_on_first_success():
    backend = CountingBackend()
    acquired = await acquire_with_retry(
        backend,
        "k",
        identifier="a",
        lock_timeout_ms=1000,
        acquire_timeout_ms=1000,
        retry_interval_ms=10,
    )
    assert acquired is True
    assert backend.create_calls == 1


@pytest.mark.asyncio
async def test_acquire_with_retry_gives_up_at_deadline():
    backend = CountingBackend()
    await backend.set("k", "other", 60000)

    started = time.monotonic()
    acquired = await acquire_with_retry(
        backend,
        "k",
        identifier="a",
        lock_timeout_ms=1000,
        acquire_timeout_ms=500,
        retry_interval_ms=100,
    )
    elapsed = time.monotonic() - started

    assert acquired is False
    assert 0.3 <= elapsed <= 0.8
    assert 4 <= backend.create_calls <= 6


@pytest.mark.asyncio
async def test_acquire_with_retry_honors_attempts_limit():
    backend = CountingBackend()
    await backend.set("k", "other", 60000)

    started = time.monotonic()
    acquired = await acquire_with_retry(
        backend,
        "k",
        identifier="a",
        lock_timeout_ms=1000,
        acquire_timeout_ms=10000,
        retry_interval_ms=10,
        acquire_attempts_limit=3,
    )

    assert acquired is False
    assert backend.create_calls == 3
    assert time.monotonic() - started < 1.0


@pytest.mark.asyncio
async def test_acquire_with_retry_waits_for_expiring_holder():
    backend = InMemoryBackend()
    await backend.set("k", "other", 100)

    acquired = await acquire_with_retry(
        backend,
        "k",
        identifier="a",
        lock_timeout_ms=1000,
        acquire_timeout_ms=1000,
        retry_interval_ms=20,
    )
    assert acquired is True
    assert await backend.get("k") == "a"


@pytest.mark.asyncio
async def test_acquire_with_retry_zero_timeout_makes_one_attempt():
    backend = CountingBackend()
    await backend.set("k", "other", 60000)

    acquired = await acquire_with_retry(
        backend,
        "k",
        identifier="a",
        lock_timeout_ms=1000,
        acquire_timeout_ms=0,
        retry_interval_ms=10,
    )
    assert acquired is False
    assert backend.create_calls == 1


@pytest.mark.asyncio
async def test_store_errors_are_not_retried():
    backend = BrokenBackend()
    with pytest.raises(ConnectionError):
        await acquire_with_retry(
            backend,
            "k",
            identifier="a",
            lock_timeout_ms=1000,
            acquire_timeout_ms=1000,
            retry_interval_ms=10,
        )
    assert backend.create_calls == 1
