"""Redis-based distributed locks for multi-process reservation handling."""

import asyncio
import secrets
from contextlib import asynccontextmanager
from typing import AsyncGenerator
from uuid import UUID

import redis.asyncio as redis

from src.config.settings import Settings
from src.logging import get_logger

logger = get_logger(__name__)

# Delete the key only if it still holds our token
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class RedisLockHelper:
    """Helper for Redis-based distributed locking."""

    def __init__(
        self,
        redis_url: str,
        ttl_seconds: int = 5,
        wait_seconds: float = 2.0,
        retry_interval_seconds: float = 0.05,
        key_prefix: str = "vres:lock",
    ):
        """Initialize Redis lock helper."""
        self.redis_url = redis_url
        self.ttl_seconds = ttl_seconds
        self.wait_seconds = wait_seconds
        self.retry_interval_seconds = retry_interval_seconds
        self.key_prefix = key_prefix
        self._client: redis.Redis | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisLockHelper":
        """Build lock helper from application settings."""
        return cls(
            redis_url=settings.redis_url,
            ttl_seconds=settings.redis_lock_ttl_seconds,
            wait_seconds=settings.lock_wait_seconds,
        )

    async def connect(self) -> None:
        """Establish Redis connection."""
        self._client = redis.from_url(self.redis_url, encoding="utf-8", decode_responses=True)

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @asynccontextmanager
    async def acquire_resource_lock(self, resource_id: UUID) -> AsyncGenerator[bool, None]:
        """Acquire exclusive lock on a resource."""
        async with self._acquire(f"{self.key_prefix}:resource:{resource_id}") as acquired:
            yield acquired

    @asynccontextmanager
    async def acquire_reservation_lock(
        self, reservation_id: UUID
    ) -> AsyncGenerator[bool, None]:
        """Acquire exclusive lock on a reservation."""
        async with self._acquire(
            f"{self.key_prefix}:reservation:{reservation_id}"
        ) as acquired:
            yield acquired

    async def is_locked(self, lock_key: str) -> bool:
        """Check if a lock key is currently held."""
        client = self._require_client()
        return bool(await client.exists(lock_key))

    @asynccontextmanager
    async def _acquire(self, lock_key: str) -> AsyncGenerator[bool, None]:
        client = self._require_client()
        token = secrets.token_hex(16)
        acquired = False
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.wait_seconds

        try:
            while True:
                acquired = bool(
                    await client.set(lock_key, token, ex=self.ttl_seconds, nx=True)
                )
                if acquired or loop.time() >= deadline:
                    break
                await asyncio.sleep(self.retry_interval_seconds)

            if not acquired:
                logger.warning("lock_wait_expired", lock_key=lock_key)
            yield acquired
        finally:
            if acquired:
                await client.eval(_RELEASE_SCRIPT, 1, lock_key, token)

    def _require_client(self) -> redis.Redis:
        if not self._client:
            raise RuntimeError("Redis client not connected")
        return self._client
