"""
Distributed lock.

Redis-based lock preventing two workers from running the same job
(for example the daily settlement for one date) concurrently.
Falls back to a process-local asyncio lock when Redis is unavailable.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from loguru import logger
from redis.asyncio import Redis
from redis.exceptions import LockError, RedisError

from app.config.operational_constants import (
    BLOCKING_TIMEOUT_DEFAULT,
    LOCK_TIMEOUT_MEDIUM,
)


# Entries live only while a holder or waiter uses them
_local_locks: dict[str, asyncio.Lock] = {}
_local_refs: dict[str, int] = {}


class DistributedLock:
    """Distributed lock with local fallback."""

    def __init__(
        self, redis_client: Redis | None = None, prefix: str = "lock:"
    ) -> None:
        """
        Initialize lock.

        Args:
            redis_client: Redis client (None = local lock only)
            prefix: Key prefix for lock names
        """
        self.redis_client = redis_client
        self.prefix = prefix

    @asynccontextmanager
    async def lock(
        self,
        key: str,
        timeout: int = LOCK_TIMEOUT_MEDIUM,
        blocking: bool = True,
        blocking_timeout: float = BLOCKING_TIMEOUT_DEFAULT,
    ) -> AsyncIterator[bool]:
        """
        Acquire lock for the duration of the block.

        Args:
            key: Lock name
            timeout: Lock expiry in seconds
            blocking: Wait for the lock if it is held
            blocking_timeout: Max seconds to wait

        Yields:
            True if the lock was acquired, False otherwise
        """
        if self.redis_client is None:
            async with self._local_lock(key, blocking, blocking_timeout) as acquired:
                yield acquired
            return

        redis_lock = self.redis_client.lock(
            f"{self.prefix}{key}",
            timeout=timeout,
            blocking=blocking,
            blocking_timeout=blocking_timeout if blocking else None,
        )

        try:
            acquired = await redis_lock.acquire()
        except RedisError as e:
            logger.warning(
                f"Redis lock unavailable for {key}, using local lock: {e}"
            )
            async with self._local_lock(key, blocking, blocking_timeout) as local_acquired:
                yield local_acquired
            return

        if not acquired:
            logger.warning(f"Lock {key} is held by another worker")

        try:
            yield acquired
        finally:
            if acquired:
                try:
                    await redis_lock.release()
                except LockError as e:
                    # Lock expired before the block finished
                    logger.warning(f"Failed to release lock {key}: {e}")

    @asynccontextmanager
    async def _local_lock(
        self, key: str, blocking: bool, blocking_timeout: float
    ) -> AsyncIterator[bool]:
        local = _local_locks.setdefault(key, asyncio.Lock())
        _local_refs[key] = _local_refs.get(key, 0) + 1

        try:
            acquired = False
            if not blocking:
                if not local.locked():
                    await local.acquire()
                    acquired = True
            else:
                try:
                    await asyncio.wait_for(local.acquire(), timeout=blocking_timeout)
                    acquired = True
                except TimeoutError:
                    acquired = False

            try:
                yield acquired
            finally:
                if acquired:
                    local.release()
        finally:
            _local_refs[key] -= 1
            if _local_refs[key] == 0:
                del _local_refs[key]
                _local_locks.pop(key, None)
