# ABOUTME: Duration string parsing for monitor thresholds and tick periods
# ABOUTME: Converts strings like "10m", "30s", "1h30m" into timedelta objects

import re
from datetime import timedelta

_UNITS = {
    "d": "days",
    "h": "hours",
    "m": "minutes",
    "s": "seconds",
}

_TOKEN = re.compile(r"(\d+(?:\.\d+)?)\s*([dhms])")


def parse_interval(duration: str | None, default: timedelta | None = None) -> timedelta:
    """
    Parse a duration string into a timedelta.

    Units: d (days), h (hours), m (minutes), s (seconds). Units may be
    combined ("1h30m") and repeated units accumulate.

    Args:
        duration: Duration string, or None/empty to use the default
        default: Value returned for an empty duration

    Returns:
        The parsed timedelta

    Raises:
        ValueError: If the string is malformed, negative, zero, or empty
            with no default

    Examples:
        >>> parse_interval("10m")
        datetime.timedelta(seconds=600)
        >>> parse_interval("", default=timedelta(seconds=30))
        datetime.timedelta(seconds=30)
    """
    if not duration or not duration.strip():
        if default is None:
            raise ValueError("Duration is empty")
        return default

    text = duration.strip().lower()

    if text.startswith("-"):
        raise ValueError("Duration values must be positive")

    # Everything in the string must be consumed by number+unit tokens
    if _TOKEN.sub("", text).strip():
        raise ValueError(
            f"Invalid duration format: '{duration}'. "
            "Expected format like '30s', '10m', '1h30m'."
        )

    kwargs: dict[str, float] = {}
    for value_str, unit in _TOKEN.findall(text):
        value = float(value_str)
        if value <= 0:
            raise ValueError(f"Duration values must be positive. Got: {value_str}{unit}")
        name = _UNITS[unit]
        kwargs[name] = kwargs.get(name, 0.0) + value

    return timedelta(**kwargs)
