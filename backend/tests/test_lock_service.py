"""Tests for the Redis and in-process lock backends."""

import pytest
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

from app.services.lock_service import (
    SWEEPER_LOCK_KEY,
    LocalLockService,
    LockNotAcquiredError,
    LockService,
    RedisLockService,
    equipment_lock_key,
)


class TestRedisLock:
    """Test Redis distributed lock operations."""

    @pytest.mark.asyncio
    async def test_acquire_lock_success(self, mock_redis):
        """Test successful lock acquisition."""
        mock_redis.set = AsyncMock(return_value=True)  # SET NX returns True
        service = RedisLockService(mock_redis)
        key = equipment_lock_key(uuid4())

        owner_id = await service.acquire(key, ttl=10)

        assert owner_id is not None
        mock_redis.set.assert_called_once()
        call_args = mock_redis.set.call_args
        assert call_args.args == (key, owner_id)
        assert call_args.kwargs["nx"] is True
        assert call_args.kwargs["ex"] == 10

    @pytest.mark.asyncio
    async def test_acquire_lock_failure(self, mock_redis):
        """Test lock acquisition fails when already locked."""
        mock_redis.set = AsyncMock(return_value=None)  # SET NX returns None when key exists
        service = RedisLockService(mock_redis)

        owner_id = await service.acquire(SWEEPER_LOCK_KEY, ttl=240)

        assert owner_id is None
        mock_redis.set.assert_called_once()

    @pytest.mark.asyncio
    async def test_acquire_lock_retries_until_free(self, mock_redis):
        mock_redis.set = AsyncMock(side_effect=[None, None, True])
        service = RedisLockService(mock_redis, retry_interval=0.001)

        owner_id = await service.acquire("lock:test", ttl=10, blocking_timeout=1.0)

        assert owner_id is not None
        assert mock_redis.set.call_count == 3

    @pytest.mark.asyncio
    async def test_release_lock_success(self, mock_redis):
        """Test successful lock release with correct owner."""
        mock_script = AsyncMock(return_value=1)
        mock_redis.register_script = MagicMock(return_value=mock_script)
        service = RedisLockService(mock_redis)

        released = await service.release("lock:test", "owner-1")

        assert released is True
        mock_script.assert_called_once_with(keys=["lock:test"], args=["owner-1"])

    @pytest.mark.asyncio
    async def test_release_lock_wrong_owner(self, mock_redis):
        """Test lock release fails with wrong owner."""
        mock_script = AsyncMock(return_value=0)
        mock_redis.register_script = MagicMock(return_value=mock_script)
        service = RedisLockService(mock_redis)

        released = await service.release("lock:test", "someone-else")

        assert released is False

    @pytest.mark.asyncio
    async def test_release_script_registered_once(self, mock_redis):
        mock_script = AsyncMock(return_value=1)
        mock_redis.register_script = MagicMock(return_value=mock_script)
        service = RedisLockService(mock_redis)

        await service.release("lock:a", "owner")
        await service.release("lock:b", "owner")

        mock_redis.register_script.assert_called_once()

    @pytest.mark.asyncio
    async def test_hold_raises_when_busy(self, mock_redis):
        mock_redis.set = AsyncMock(return_value=None)
        service = RedisLockService(mock_redis)

        with pytest.raises(LockNotAcquiredError):
            async with service.hold("lock:test", ttl=10):
                pass


class TestLockServiceBase:
    def test_backends_must_implement_acquire_and_release(self):
        with pytest.raises(TypeError):
            LockService()

        class HalfDone(LockService):
            async def release(self, key, owner_id):
                return True

        with pytest.raises(TypeError):
            HalfDone()


class TestLocalLock:
    """Test the in-process lock table."""

    @pytest.mark.asyncio
    async def test_exclusive_until_released(self):
        service = LocalLockService()

        owner_id = await service.acquire("lock:x", ttl=10)
        assert owner_id is not None
        assert await service.acquire("lock:x", ttl=10) is None

        assert await service.release("lock:x", owner_id) is True
        assert await service.acquire("lock:x", ttl=10) is not None

    @pytest.mark.asyncio
    async def test_only_owner_releases(self):
        service = LocalLockService()
        await service.acquire("lock:x", ttl=10)

        assert await service.release("lock:x", "intruder") is False
        assert await service.acquire("lock:x", ttl=10) is None

    @pytest.mark.asyncio
    async def test_expired_lock_can_be_taken(self):
        service = LocalLockService()
        await service.acquire("lock:x", ttl=0)

        assert await service.acquire("lock:x", ttl=10) is not None

    @pytest.mark.asyncio
    async def test_keys_are_independent(self):
        service = LocalLockService()
        first = equipment_lock_key(uuid4())
        second = equipment_lock_key(uuid4())

        assert await service.acquire(first, ttl=10) is not None
        assert await service.acquire(second, ttl=10) is not None

    @pytest.mark.asyncio
    async def test_hold_releases_on_error(self):
        service = LocalLockService()

        with pytest.raises(ValueError):
            async with service.hold("lock:x", ttl=10):
                raise ValueError("boom")

        assert await service.acquire("lock:x", ttl=10) is not None
