# ABOUTME: Heartbeat status record and the online/offline state machine
# ABOUTME: Records heartbeat instants, derives liveness, and reports transitions

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

logger = logging.getLogger(__name__)

OFFLINE_THRESHOLD = timedelta(minutes=10)
HEARTBEAT_INTERVAL = timedelta(minutes=8)


class Transition(Enum):
    """Outcome of re-evaluating the online flag."""

    NO_CHANGE = "no_change"
    BECAME_ONLINE = "became_online"
    BECAME_OFFLINE = "became_offline"

    @property
    def changed(self) -> bool:
        return self is not Transition.NO_CHANGE


@dataclass
class HeartbeatStatus:
    """
    Mutable status record owned by a single HeartbeatTracker.

    Attributes:
        last_heartbeat_at: When the last heartbeat was observed, None until the first
        is_online: Cached result of the last derivation; refresh before reading
        published_message_id: Id of the live status message, None until first publish
    """

    last_heartbeat_at: datetime | None = None
    is_online: bool = False
    published_message_id: int | None = None


@dataclass(frozen=True)
class StatusSnapshot:
    """Read-only view of the tracker at one instant, used for rendering."""

    now: datetime
    is_online: bool
    last_heartbeat_at: datetime | None
    time_since: timedelta | None
    next_expected: timedelta | None
    offline_threshold: timedelta

    @property
    def has_heartbeat(self) -> bool:
        return self.last_heartbeat_at is not None


class HeartbeatTracker:
    """
    Turns raw heartbeat observations into an online/offline classification.

    The tracker never performs I/O. Callers pass `now` explicitly so every
    derivation is reproducible; `refresh` is the only place the cached
    `is_online` flag is written.
    """

    def __init__(
        self,
        status: HeartbeatStatus | None = None,
        offline_threshold: timedelta = OFFLINE_THRESHOLD,
        heartbeat_interval: timedelta = HEARTBEAT_INTERVAL,
    ):
        self.status = status if status is not None else HeartbeatStatus()
        self.offline_threshold = offline_threshold
        self.heartbeat_interval = heartbeat_interval

    def record_heartbeat(self, now: datetime) -> None:
        """
        Record a heartbeat observed at `now`.

        Out-of-order instants are stored as given: the most recently
        processed observation wins even if its timestamp is older.
        """
        previous = self.status.last_heartbeat_at
        if previous is not None and now < previous:
            logger.debug(f"Heartbeat at {now.isoformat()} is older than {previous.isoformat()}")
        self.status.last_heartbeat_at = now

    def derive_online(self, now: datetime) -> bool:
        """True iff a heartbeat was seen less than offline_threshold before `now`."""
        last = self.status.last_heartbeat_at
        if last is None:
            return False
        return now - last < self.offline_threshold

    def refresh(self, now: datetime) -> Transition:
        """
        Re-derive the online flag and report whether it flipped.

        Returns:
            BECAME_ONLINE / BECAME_OFFLINE on a flip, NO_CHANGE otherwise
        """
        online = self.derive_online(now)
        was_online = self.status.is_online
        self.status.is_online = online

        if online == was_online:
            return Transition.NO_CHANGE
        transition = Transition.BECAME_ONLINE if online else Transition.BECAME_OFFLINE
        logger.info(f"Monitored service {transition.value.replace('_', ' ')}")
        return transition

    def time_since_last_heartbeat(self, now: datetime) -> timedelta | None:
        """Elapsed time since the last heartbeat, or None if never seen."""
        last = self.status.last_heartbeat_at
        if last is None:
            return None
        return now - last

    def next_expected(self, now: datetime) -> timedelta | None:
        """
        Time remaining until the next heartbeat is due.

        Returns None when the heartbeat is overdue, or when none was ever seen.
        """
        last = self.status.last_heartbeat_at
        if last is None:
            return None
        remaining = last + self.heartbeat_interval - now
        if remaining <= timedelta(0):
            return None
        return remaining

    def snapshot(self, now: datetime) -> StatusSnapshot:
        """Capture the current state. Reads the cached flag, so refresh first."""
        return StatusSnapshot(
            now=now,
            is_online=self.status.is_online,
            last_heartbeat_at=self.status.last_heartbeat_at,
            time_since=self.time_since_last_heartbeat(now),
            next_expected=self.next_expected(now),
            offline_threshold=self.offline_threshold,
        )
