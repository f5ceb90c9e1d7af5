# ABOUTME: StatusTicker drives periodic status re-evaluation using asyncio
# ABOUTME: Manages the tick task lifecycle (start/stop) and isolates tick failures

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any

logger = logging.getLogger(__name__)

# Type alias for the tick callback
TickCallback = Callable[[], Awaitable[Any]]


class StatusTicker:
    """
    Calls a callback on a fixed period until stopped.

    The ticker is a safety net: it catches the online to offline transition
    when heartbeats simply stop arriving. The first tick happens one period
    after start.
    """

    def __init__(self, period: timedelta, on_tick: TickCallback):
        """
        Initialize the StatusTicker.

        Args:
            period: Time between ticks
            on_tick: Async callback run on every tick
        """
        self.period = period
        self.on_tick = on_tick
        self._running = False
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Start ticking. Does nothing if already running."""
        if self._running:
            logger.warning("Status ticker already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        self._task.add_done_callback(self._on_task_done)
        logger.info(f"Status ticker started with period: {self.period}")

    @staticmethod
    def _on_task_done(task: asyncio.Task[None]) -> None:
        """Log when the ticker task finishes (expected or not)."""
        if task.cancelled():
            logger.info("Status ticker task was cancelled")
        elif task.exception():
            logger.error("Status ticker task died with exception: %s", task.exception())
        else:
            logger.debug("Status ticker task finished")

    async def stop(self) -> None:
        """Cancel the tick task and wait for it to finish."""
        if not self._running:
            return

        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info("Status ticker stopped")

    async def _run_loop(self) -> None:
        period_secs = self.period.total_seconds()
        while self._running:
            await asyncio.sleep(period_secs)
            try:
                await self.on_tick()
            except Exception:
                logger.exception("Status tick failed")
