"""Redis-backed leases using SET NX PX and compare-and-act Lua scripts."""

from __future__ import annotations

import os
from typing import Optional

from redis.asyncio import Redis

from .locks import LockManager
from .models import LockOptions
from .settings import DEFAULT_REDIS_URL, LockSettings


# Extend only if we still own the key.
EXTEND_SCRIPT = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('pexpire', KEYS[1], ARGV[2])
else
    return 0
end
"""

# Delete only if we still own the key.
DELETE_SCRIPT = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
else
    return 0
end
"""


class RedisBackend:
    def __init__(self, redis: Redis, *, key_prefix: str = "") -> None:
        self._redis = redis
        self._key_prefix = key_prefix
        self._extend_script = redis.register_script(EXTEND_SCRIPT)
        self._delete_script = redis.register_script(DELETE_SCRIPT)

    @classmethod
    def from_url(cls, url: str, *, key_prefix: str = "") -> "RedisBackend":
        return cls(Redis.from_url(url, decode_responses=True), key_prefix=key_prefix)

    @property
    def redis(self) -> Redis:
        return self._redis

    def _key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    async def create(self, key: str, value: str, ttl_ms: int) -> bool:
        return bool(await self._redis.set(self._key(key), value, px=ttl_ms, nx=True))

    async def extend(self, key: str, value: str, ttl_ms: int) -> bool:
        result = await self._extend_script(keys=[self._key(key)], args=[value, ttl_ms])
        return bool(result)

    async def delete(self, key: str, value: str) -> bool:
        result = await self._delete_script(keys=[self._key(key)], args=[value])
        return bool(result)

    async def close(self) -> None:
        await self._redis.aclose()


class RedisLockManager(LockManager):
    def __init__(
        self,
        url: Optional[str] = None,
        *,
        key_prefix: str = "mutex:",
        defaults: Optional[LockOptions] = None,
    ) -> None:
        backend = RedisBackend.from_url(url or os.getenv("LEASELOCK_REDIS_URL", DEFAULT_REDIS_URL))
        super().__init__(backend, key_prefix=key_prefix, defaults=defaults)

    @classmethod
    def from_settings(cls, settings: LockSettings) -> "RedisLockManager":
        return cls(settings.redis_url, key_prefix=settings.key_prefix, defaults=settings.lock)

    async def close(self) -> None:
        await self.backend.close()
