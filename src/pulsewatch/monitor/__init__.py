# ABOUTME: Heartbeat monitor package - liveness tracking for an external service
# ABOUTME: Provides interval parsing, config, heartbeat matching, status tracking, and time formatting

from pulsewatch.monitor.config import MonitorConfig
from pulsewatch.monitor.interval import parse_interval
from pulsewatch.monitor.matcher import HeartbeatMatch, match_heartbeat
from pulsewatch.monitor.timefmt import format_next_expected, format_overdue, format_time_ago
from pulsewatch.monitor.tracker import HeartbeatStatus, HeartbeatTracker, StatusSnapshot, Transition

__all__ = [
    "MonitorConfig",
    "parse_interval",
    "HeartbeatMatch",
    "match_heartbeat",
    "format_next_expected",
    "format_overdue",
    "format_time_ago",
    "HeartbeatStatus",
    "HeartbeatTracker",
    "StatusSnapshot",
    "Transition",
]
