"""Lock helpers serializing work per resource and per reservation."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncGenerator, Protocol
from uuid import UUID


class LockHelperProtocol(Protocol):
    """Keyed exclusive locks; each context yields whether it was acquired."""

    def acquire_resource_lock(self, resource_id: UUID) -> AsyncContextManager[bool]:
        """Serialize inventory and conflict checks for one resource."""
        ...

    def acquire_reservation_lock(self, reservation_id: UUID) -> AsyncContextManager[bool]:
        """Serialize status changes of one reservation."""
        ...


class LocalLockHelper:
    """Per-key asyncio locks for a single-process deployment."""

    def __init__(self, wait_seconds: float = 2.0):
        """Initialize lock helper with a bounded acquisition wait."""
        self.wait_seconds = wait_seconds
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def acquire_resource_lock(self, resource_id: UUID) -> AsyncGenerator[bool, None]:
        """Acquire exclusive lock on a resource."""
        async with self._acquire(f"resource:{resource_id}") as acquired:
            yield acquired

    @asynccontextmanager
    async def acquire_reservation_lock(
        self, reservation_id: UUID
    ) -> AsyncGenerator[bool, None]:
        """Acquire exclusive lock on a reservation."""
        async with self._acquire(f"reservation:{reservation_id}") as acquired:
            yield acquired

    def is_locked(self, key: str) -> bool:
        """Check if a key is currently held."""
        lock = self._locks.get(key)
        return bool(lock and lock.locked())

    @asynccontextmanager
    async def _acquire(self, key: str) -> AsyncGenerator[bool, None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        # Holders plus waiters; the entry is dropped when this reaches zero
        self._users[key] = self._users.get(key, 0) + 1
        acquired = False

        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=self.wait_seconds)
                acquired = True
            except asyncio.TimeoutError:
                acquired = False
            yield acquired
        finally:
            if acquired:
                lock.release()
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]
