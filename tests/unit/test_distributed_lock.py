"""
Unit tests for DistributedLock.

Tests cover:
- Redis lock acquire/release
- Local fallback without Redis
- Local fallback on Redis errors
- Local lock bookkeeping released after use
"""

from unittest.mock import AsyncMock

from redis.exceptions import ConnectionError as RedisConnectionError

from app.utils import distributed_lock
from app.utils.distributed_lock import DistributedLock


class TestDistributedLock:
    """Test DistributedLock."""

    async def test_redis_lock_released(self, mock_redis_client):
        """Acquired Redis lock is released after the block."""
        lock = DistributedLock(redis_client=mock_redis_client)

        async with lock.lock("daily_settlement:2024-05-09") as acquired:
            assert acquired is True

        mock_redis_client.lock.assert_called_once()
        assert mock_redis_client.lock.call_args.args[0] == "lock:daily_settlement:2024-05-09"
        mock_redis_client.lock.return_value.release.assert_awaited_once()

    async def test_redis_lock_held_elsewhere(self, mock_redis_client):
        """Lock not acquired yields False and is not released."""
        mock_redis_client.lock.return_value.acquire = AsyncMock(return_value=False)
        lock = DistributedLock(redis_client=mock_redis_client)

        async with lock.lock("job", blocking=False) as acquired:
            assert acquired is False

        mock_redis_client.lock.return_value.release.assert_not_awaited()

    async def test_local_lock_without_redis(self):
        """Second non-blocking acquire of a held local lock fails."""
        lock = DistributedLock()

        async with lock.lock("local-job", blocking=False) as first:
            async with lock.lock("local-job", blocking=False) as second:
                assert first is True
                assert second is False

        async with lock.lock("local-job", blocking=False) as again:
            assert again is True

    async def test_redis_error_falls_back_to_local(self, mock_redis_client):
        """Redis outage does not prevent the job from running."""
        mock_redis_client.lock.return_value.acquire = AsyncMock(
            side_effect=RedisConnectionError("down")
        )
        lock = DistributedLock(redis_client=mock_redis_client)

        async with lock.lock("fallback-job") as acquired:
            assert acquired is True

    async def test_local_locks_dropped_after_release(self):
        """Settling many days does not grow the local lock table."""
        lock = DistributedLock()

        for day in ("2024-05-08", "2024-05-09", "2024-05-10"):
            async with lock.lock(f"daily_settlement:{day}", blocking=False) as acquired:
                assert acquired is True
                assert f"daily_settlement:{day}" in distributed_lock._local_locks

        assert distributed_lock._local_locks == {}
        assert distributed_lock._local_refs == {}

    async def test_local_lock_kept_while_nested_user_waits(self):
        """The entry survives until the last user of the key leaves."""
        lock = DistributedLock()

        async with lock.lock("shared", blocking=False):
            async with lock.lock("shared", blocking=False) as second:
                assert second is False
            assert "shared" in distributed_lock._local_locks

        assert "shared" not in distributed_lock._local_locks
