"""CLI helper: acquire a Redis-backed lock, hold it while renewing, then release."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from leaselock import AcquireTimeoutError, LockSettings, LostLockError, RedisLockManager
from leaselock.utils.logging import get_logger


logger = get_logger("LockCLI")


def _load_settings(path: Path | None) -> LockSettings:
    if path is None:
        return LockSettings.from_env()
    return LockSettings.from_file(path)


async def main() -> int:
    parser = argparse.ArgumentParser(description="Acquire a distributed lock and hold it for a while.")
    parser.add_argument("name", help="Resource name to lock")
    parser.add_argument("--config", type=Path, default=None, help="Path to lock settings YAML (defaults to env)")
    parser.add_argument("--hold-ms", type=int, default=15000, help="How long to hold the lock once acquired")
    parser.add_argument("--identifier", default=None, help="Adopt a lease already created with this identifier")
    args = parser.parse_args()

    settings = _load_settings(args.config)
    manager = RedisLockManager.from_settings(settings)
    lost = asyncio.Event()

    def on_lock_lost(error: LostLockError) -> None:
        logger.error("%s", error)
        lost.set()

    if args.identifier:
        lock = manager.adopt(args.name, args.identifier, on_lock_lost=on_lock_lost)
    else:
        lock = manager.lock(args.name, on_lock_lost=on_lock_lost)

    try:
        await lock.acquire()
    except AcquireTimeoutError as exc:
        logger.error("%s", exc)
        await manager.close()
        return 1

    logger.info("Acquired %s (identifier: %s)", lock.key, lock.identifier)
    try:
        await asyncio.wait_for(lost.wait(), timeout=args.hold_ms / 1000)
    except asyncio.TimeoutError:
        pass
    finally:
        await lock.release()
        await manager.close()

    if lost.is_set():
        return 2
    logger.info("Released %s", lock.key)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
