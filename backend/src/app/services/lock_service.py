"""Mutual exclusion for check-then-write sections.

Two backends share the same polling acquire loop:
- RedisLockService: SET NX EX with an owner token, Lua compare-and-delete release
- LocalLockService: in-process dictionary, for single-worker deployments and tests
"""

import asyncio
import logging
import time
import uuid
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator

from redis.asyncio import Redis

logger = logging.getLogger(__name__)


class LockNotAcquiredError(Exception):
    """Raised when a lock could not be taken within the blocking timeout."""

    def __init__(self, key: str):
        super().__init__(f"Could not acquire lock {key}")
        self.key = key


def equipment_lock_key(equipment_id: object) -> str:
    return f"lock:equipment:{equipment_id}"


SWEEPER_LOCK_KEY = "lock:order-sweeper"


class LockService(ABC):
    """Base lock service with a polling acquire."""

    def __init__(self, retry_interval: float = 0.05):
        self.retry_interval = retry_interval

    @abstractmethod
    async def _try_acquire(self, key: str, owner_id: str, ttl: int) -> bool:
        """Single non-blocking attempt to take ``key`` for ``owner_id``."""

    @abstractmethod
    async def release(self, key: str, owner_id: str) -> bool:
        """Release ``key`` if ``owner_id`` still holds it."""

    async def acquire(
        self,
        key: str,
        ttl: int,
        blocking_timeout: float = 0,
        owner_id: str | None = None,
    ) -> str | None:
        """Acquire ``key``, polling until ``blocking_timeout`` seconds pass.

        Args:
            key: Lock key
            ttl: Lock expiry in seconds so a crashed holder cannot block forever
            blocking_timeout: 0 for a single attempt
            owner_id: Owner token (auto-generated if None)

        Returns:
            Owner token on success, None on timeout
        """
        if owner_id is None:
            owner_id = str(uuid.uuid4())

        deadline = time.monotonic() + blocking_timeout
        while True:
            if await self._try_acquire(key, owner_id, ttl):
                return owner_id
            if time.monotonic() >= deadline:
                logger.debug(f"Lock {key} busy, gave up after {blocking_timeout}s")
                return None
            await asyncio.sleep(self.retry_interval)

    @asynccontextmanager
    async def hold(
        self, key: str, ttl: int, blocking_timeout: float = 0
    ) -> AsyncIterator[str]:
        """Hold ``key`` for the duration of the block.

        Raises:
            LockNotAcquiredError: lock still busy after ``blocking_timeout``
        """
        owner_id = await self.acquire(key, ttl, blocking_timeout)
        if owner_id is None:
            raise LockNotAcquiredError(key)
        try:
            yield owner_id
        finally:
            released = await self.release(key, owner_id)
            if not released:
                logger.warning(f"Lock {key} expired before release (owner {owner_id})")


class RedisLockService(LockService):
    """Distributed lock on Redis shared by every API worker and the sweeper."""

    # Lua script for safe lock release (only delete own lock)
    RELEASE_LOCK_SCRIPT = """
    if redis.call("GET", KEYS[1]) == ARGV[1] then
        return redis.call("DEL", KEYS[1])
    else
        return 0
    end
    """

    def __init__(self, redis: Redis, retry_interval: float = 0.05):
        super().__init__(retry_interval)
        self.redis = redis
        self._release_lock_script = None

    async def _get_release_lock_script(self):
        """Get or register the release lock Lua script."""
        if self._release_lock_script is None:
            self._release_lock_script = self.redis.register_script(self.RELEASE_LOCK_SCRIPT)
        return self._release_lock_script

    async def _try_acquire(self, key: str, owner_id: str, ttl: int) -> bool:
        acquired = await self.redis.set(key, owner_id, nx=True, ex=ttl)
        return bool(acquired)

    async def release(self, key: str, owner_id: str) -> bool:
        """Release a lock only if ``owner_id`` still holds it."""
        script = await self._get_release_lock_script()
        result = await script(keys=[key], args=[owner_id])
        return int(result) == 1


class LocalLockService(LockService):
    """Process-local lock table with the same expiry semantics as Redis."""

    def __init__(self, retry_interval: float = 0.01):
        super().__init__(retry_interval)
        self._locks: dict[str, tuple[str, float]] = {}

    async def _try_acquire(self, key: str, owner_id: str, ttl: int) -> bool:
        now = time.monotonic()
        held = self._locks.get(key)
        if held is not None and held[1] > now:
            return False
        self._locks[key] = (owner_id, now + ttl)
        return True

    async def release(self, key: str, owner_id: str) -> bool:
        held = self._locks.get(key)
        if held is None or held[0] != owner_id:
            return False
        del self._locks[key]
        return True
