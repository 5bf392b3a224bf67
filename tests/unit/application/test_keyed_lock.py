"""Unit tests for KeyedLockRegistry."""

from __future__ import annotations

import asyncio

import pytest

from penalty_engine.application.services.keyed_lock import KeyedLockRegistry
from penalty_engine.domain.errors import PenaltyEngineTimeoutError


class TestKeyedLockRegistry:
    async def test_same_key_is_serialized(self) -> None:
        registry = KeyedLockRegistry()
        order: list[str] = []

        async def worker(name: str) -> None:
            async with registry.hold("user-1", timeout_seconds=1.0):
                order.append(f"{name}-start")
                await asyncio.sleep(0.01)
                order.append(f"{name}-end")

        await asyncio.gather(worker("a"), worker("b"))

        assert order in (
            ["a-start", "a-end", "b-start", "b-end"],
            ["b-start", "b-end", "a-start", "a-end"],
        )

    async def test_different_keys_do_not_block(self) -> None:
        registry = KeyedLockRegistry()

        async with registry.hold("user-1", timeout_seconds=1.0):
            async with registry.hold("user-2", timeout_seconds=0.05):
                assert registry.is_locked("user-1")
                assert registry.is_locked("user-2")

    async def test_timeout_raises_domain_error(self) -> None:
        registry = KeyedLockRegistry()

        async with registry.hold("user-1", timeout_seconds=1.0):
            with pytest.raises(PenaltyEngineTimeoutError) as exc_info:
                async with registry.hold(
                    "user-1", timeout_seconds=0.01, operation="process_infraction"
                ):
                    pass

        assert exc_info.value.operation == "process_infraction"
        assert exc_info.value.timeout_seconds == 0.01

    async def test_locks_are_dropped_when_released(self) -> None:
        registry = KeyedLockRegistry()

        async with registry.hold(("user-1", "prog-1"), timeout_seconds=1.0):
            assert len(registry) == 1

        assert len(registry) == 0
        assert not registry.is_locked(("user-1", "prog-1"))

    async def test_lock_released_after_exception(self) -> None:
        registry = KeyedLockRegistry()

        with pytest.raises(RuntimeError):
            async with registry.hold("user-1", timeout_seconds=1.0):
                raise RuntimeError("boom")

        async with registry.hold("user-1", timeout_seconds=0.05):
            pass
        assert len(registry) == 0
