"""In-process lease store with TTL expiry, for tests and single-process use."""

from __future__ import annotations

import asyncio
import time
from typing import Dict, Optional, Tuple


class InMemoryBackend:
    """Dictionary-backed store; expired entries are dropped on every access."""

    def __init__(self) -> None:
        self._entries: Dict[str, Tuple[str, float]] = {}  # key -> (value, expires_at)
        self._lock = asyncio.Lock()

    def _live_value(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if time.monotonic() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def create(self, key: str, value: str, ttl_ms: int) -> bool:
        async with self._lock:
            if self._live_value(key) is not None:
                return False
            self._entries[key] = (value, time.monotonic() + ttl_ms / 1000)
            return True

    async def extend(self, key: str, value: str, ttl_ms: int) -> bool:
        async with self._lock:
            if self._live_value(key) != value:
                return False
            self._entries[key] = (value, time.monotonic() + ttl_ms / 1000)
            return True

    async def delete(self, key: str, value: str) -> bool:
        async with self._lock:
            if self._live_value(key) != value:
                return False
            del self._entries[key]
            return True

    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            return self._live_value(key)

    async def pttl(self, key: str) -> Optional[int]:
        """Remaining TTL in milliseconds, or None if the key is absent."""
        async with self._lock:
            if self._live_value(key) is None:
                return None
            _, expires_at = self._entries[key]
            return max(0, round((expires_at - time.monotonic()) * 1000))

    async def set(self, key: str, value: str, ttl_ms: int) -> None:
        """Unconditionally overwrite ``key``."""
        async with self._lock:
            self._entries[key] = (value, time.monotonic() + ttl_ms / 1000)

    async def remove(self, key: str) -> None:
        """Unconditionally drop ``key``."""
        async with self._lock:
            self._entries.pop(key, None)
