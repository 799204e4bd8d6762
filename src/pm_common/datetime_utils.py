"""UTC datetime utilities."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def is_past(deadline: datetime, now: datetime | None = None) -> bool:
    """True once ``now`` is strictly after ``deadline`` (lazy expiry check)."""
    current = now or utc_now()
    if deadline.tzinfo is None:
        deadline = deadline.replace(tzinfo=timezone.utc)
    return current > deadline


def to_unix(moment: datetime) -> int:
    return int(moment.timestamp())
