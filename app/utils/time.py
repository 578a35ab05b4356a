"""Time utility helpers."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]


def now_utc() -> datetime:
    """Return current timezone-aware UTC datetime."""
    return datetime.now(tz=UTC)


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse a store timestamp into an aware UTC datetime."""
    if value is None or value == "":
        return None

    if isinstance(value, str):
        normalized = value.replace("Z", "+00:00")
        parsed = datetime.fromisoformat(normalized)
    else:
        parsed = value

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def within_window(now: datetime, start: datetime | None, end: datetime | None) -> bool:
    """Return True when ``now`` lies in the inclusive ``[start, end]`` range."""
    if start is None or end is None:
        return False
    return start <= now <= end
