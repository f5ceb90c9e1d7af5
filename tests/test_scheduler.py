# ABOUTME: Unit tests for StatusTicker
# ABOUTME: Tests periodic ticking, lifecycle management, and tick failure isolation

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from pulsewatch.monitor.scheduler import StatusTicker


class TestStatusTickerLifecycle:
    """Tests for ticker start/stop lifecycle."""

    def test_init(self):
        on_tick = AsyncMock()
        ticker = StatusTicker(timedelta(seconds=30), on_tick)

        assert ticker.period == timedelta(seconds=30)
        assert ticker.on_tick is on_tick
        assert ticker.running is False
        assert ticker._task is None

    @pytest.mark.asyncio
    async def test_start_creates_task(self):
        ticker = StatusTicker(timedelta(hours=1), AsyncMock())

        ticker.start()
        assert ticker.running is True
        assert ticker._task is not None

        await ticker.stop()

    @pytest.mark.asyncio
    async def test_start_twice_keeps_one_task(self):
        ticker = StatusTicker(timedelta(hours=1), AsyncMock())

        ticker.start()
        task = ticker._task
        ticker.start()
        assert ticker._task is task

        await ticker.stop()

    @pytest.mark.asyncio
    async def test_stop_cancels_task(self):
        ticker = StatusTicker(timedelta(hours=1), AsyncMock())

        ticker.start()
        task = ticker._task
        await ticker.stop()

        assert ticker.running is False
        assert ticker._task is None
        assert task.cancelled()

    @pytest.mark.asyncio
    async def test_stop_when_not_running(self):
        ticker = StatusTicker(timedelta(hours=1), AsyncMock())
        await ticker.stop()
        assert ticker.running is False


class TestStatusTickerTicking:
    """Tests for tick execution."""

    @pytest.mark.asyncio
    async def test_does_not_tick_immediately(self):
        on_tick = AsyncMock()
        ticker = StatusTicker(timedelta(hours=1), on_tick)

        ticker.start()
        await asyncio.sleep(0.05)
        await ticker.stop()

        on_tick.assert_not_called()

    @pytest.mark.asyncio
    async def test_ticks_repeatedly(self):
        on_tick = AsyncMock()
        ticker = StatusTicker(timedelta(milliseconds=10), on_tick)

        ticker.start()
        await asyncio.sleep(0.1)
        await ticker.stop()

        assert on_tick.call_count >= 2

    @pytest.mark.asyncio
    async def test_tick_failure_does_not_stop_loop(self):
        calls = []

        async def flaky_tick():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")

        on_tick = AsyncMock(side_effect=flaky_tick)
        ticker = StatusTicker(timedelta(milliseconds=10), on_tick)

        ticker.start()
        await asyncio.sleep(0.1)
        assert ticker._task is not None
        assert not ticker._task.done()
        await ticker.stop()

        assert on_tick.call_count >= 2
