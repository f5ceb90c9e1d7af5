# ABOUTME: HeartbeatMonitor routes heartbeats, ticks, and status queries
# ABOUTME: Applies the publish policy: every heartbeat, otherwise only on transitions

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from pulsewatch.monitor.publisher import PublishResult, StatusPublisher
from pulsewatch.monitor.tracker import HeartbeatTracker, StatusSnapshot, Transition

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class HeartbeatMonitor:
    """
    Glue between the three inputs and the tracker/publisher pair.

    - heartbeat observed: record, refresh, always publish
    - tick: refresh, publish only on a transition
    - status query: refresh, publish only on a transition, return a snapshot

    Publish failures are logged and otherwise ignored; the next heartbeat
    or tick publishes again, there is no separate retry.
    """

    def __init__(
        self,
        tracker: HeartbeatTracker,
        publisher: StatusPublisher,
        clock: Clock = utc_now,
    ):
        self.tracker = tracker
        self.publisher = publisher
        self.clock = clock

    async def on_heartbeat(self, now: datetime | None = None) -> PublishResult:
        """Handle a heartbeat observation."""
        now = now or self.clock()
        self.tracker.record_heartbeat(now)
        transition = self.tracker.refresh(now)
        logger.info(f"Heartbeat detected at {now.isoformat()} ({transition.value})")

        # Publish even without a flip so the displayed timestamp stays fresh
        return await self._publish(self.tracker.status.is_online, now)

    async def on_tick(self, now: datetime | None = None) -> Transition:
        """Re-evaluate on the periodic timer."""
        now = now or self.clock()
        transition = self.tracker.refresh(now)
        if transition.changed:
            await self._publish(self.tracker.status.is_online, now)
        return transition

    async def status_report(self, now: datetime | None = None) -> StatusSnapshot:
        """Re-evaluate for a manual query and return what to show the caller."""
        now = now or self.clock()
        transition = self.tracker.refresh(now)
        if transition.changed:
            await self._publish(self.tracker.status.is_online, now)
        return self.tracker.snapshot(now)

    async def _publish(self, is_online: bool, now: datetime) -> PublishResult:
        result = await self.publisher.publish(is_online, now)
        if not result.success:
            logger.warning(f"Failed to publish status ({'online' if is_online else 'offline'}): {result.error}")
        return result
