"""Tests for refresh module."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from projiki_search.refresh import RefreshManager


async def wait_for_condition(condition_fn, timeout: float = 3.0, interval: float = 0.01) -> bool:
    """Wait for a condition to become true, polling at interval.

    Returns:
        True if condition was met, False if timeout was reached.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        if condition_fn():
            return True
        await asyncio.sleep(interval)
    return False


def make_service() -> MagicMock:
    service = MagicMock()
    service.rebuild_index = AsyncMock(return_value=3)
    return service


class TestRefreshManagerInit:
    def test_init_requires_positive_interval(self):
        with pytest.raises(ValueError, match="Refresh interval must be positive"):
            RefreshManager(make_service(), 0)
        with pytest.raises(ValueError, match="Refresh interval must be positive"):
            RefreshManager(make_service(), -1)

    def test_not_running_before_start(self):
        assert RefreshManager(make_service(), 30).running is False


@pytest.mark.asyncio
class TestRefreshManager:
    async def test_start_creates_task(self):
        manager = RefreshManager(make_service(), 30)
        manager.start()
        try:
            assert manager.running
            assert manager._task.get_name() == "projiki-refresh"
        finally:
            await manager.stop()

    async def test_start_idempotent(self):
        manager = RefreshManager(make_service(), 30)
        manager.start()
        first = manager._task
        manager.start()
        try:
            assert manager._task is first
        finally:
            await manager.stop()

    async def test_stop_cancels_task(self):
        manager = RefreshManager(make_service(), 30)
        manager.start()
        await manager.stop()

        assert manager.running is False
        assert manager._task is None

    async def test_stop_without_start(self):
        await RefreshManager(make_service(), 30).stop()

    async def test_rebuilds_periodically(self):
        service = make_service()
        manager = RefreshManager(service, 0.01)
        manager.start()
        try:
            assert await wait_for_condition(lambda: service.rebuild_index.await_count >= 2)
        finally:
            await manager.stop()

    async def test_continues_after_error(self):
        service = make_service()
        service.rebuild_index.side_effect = [RuntimeError("boom"), 3, 3]
        manager = RefreshManager(service, 0.01)
        manager.start()
        try:
            assert await wait_for_condition(lambda: service.rebuild_index.await_count >= 2)
            assert manager.running
        finally:
            await manager.stop()
