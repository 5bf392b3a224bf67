"""Per-key asyncio locks.

process_infraction reads the repeat count and then writes sanctions; two
concurrent reports for the same (user, program) could both observe the
same count. Holding a lock per key for the read-decide-write sequence
gives at most one escalation decision at a time per user and program.

Locks are reference counted and dropped once no caller holds or waits
on them, so the registry does not grow with the user base.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Hashable
from contextlib import asynccontextmanager

from penalty_engine.domain.errors.concurrency import PenaltyEngineTimeoutError


class KeyedLockRegistry:
    """Hands out one asyncio.Lock per key."""

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._waiters: dict[Hashable, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def is_locked(self, key: Hashable) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(
        self, key: Hashable, *, timeout_seconds: float, operation: str = "lock"
    ) -> AsyncIterator[None]:
        """Hold the lock for ``key`` for the duration of the block.

        Raises:
            PenaltyEngineTimeoutError: If the lock is not acquired in time.
        """
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=timeout_seconds)
            except TimeoutError as exc:
                raise PenaltyEngineTimeoutError(operation, timeout_seconds) from exc
            try:
                yield
            finally:
                lock.release()
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]
