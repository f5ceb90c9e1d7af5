# ABOUTME: Human-readable rendering of heartbeat ages and due times
# ABOUTME: Produces strings like "5 minutes ago", "in 3 minutes", and "overdue"

from datetime import timedelta


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'}"


def format_time_ago(delta: timedelta) -> str:
    """
    Format an elapsed duration using its largest whole unit.

    Examples:
        >>> format_time_ago(timedelta(minutes=5, seconds=59))
        '5 minutes ago'
        >>> format_time_ago(timedelta(days=1, hours=3))
        '1 day ago'
    """
    seconds = max(int(delta.total_seconds()), 0)
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if days > 0:
        return _plural(days, "day") + " ago"
    if hours > 0:
        return _plural(hours, "hour") + " ago"
    if minutes > 0:
        return _plural(minutes, "minute") + " ago"
    return _plural(seconds, "second") + " ago"


def format_next_expected(remaining: timedelta | None) -> str:
    """Format time until the next heartbeat; None means it is overdue."""
    if remaining is None or remaining <= timedelta(0):
        return "overdue"

    seconds = int(remaining.total_seconds())
    minutes = seconds // 60
    if minutes > 0:
        return "in " + _plural(minutes, "minute")
    return "in " + _plural(seconds % 60, "second")


def format_overdue(threshold: timedelta) -> str:
    """Overdue label for an offline service, e.g. 'overdue (10+ min)'."""
    minutes = int(threshold.total_seconds()) // 60
    if minutes > 0:
        return f"overdue ({minutes}+ min)"
    return f"overdue ({int(threshold.total_seconds())}+ s)"
