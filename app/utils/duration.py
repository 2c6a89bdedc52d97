"""Duration arithmetic shared by every place that derives a duration."""
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional


def utcnow() -> datetime:
    """Current instant as a timezone-aware UTC datetime, at storage precision."""
    return ensure_utc(datetime.now(timezone.utc))


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a datetime to aware UTC at millisecond precision.

    Naive datetimes are taken to already be in UTC, which is how MongoDB
    stores them. BSON dates only hold milliseconds, so sub-millisecond
    digits are dropped here; durations derived from the result match what
    can be recomputed from the stored document.

    Examples:
        >>> ensure_utc(datetime(2024, 1, 1, 9, 0)).isoformat()
        '2024-01-01T09:00:00+00:00'
        >>> ensure_utc(datetime(2024, 1, 1, 9, 0, 0, 1999)).microsecond
        1000
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def calculate_duration_minutes(start_time: datetime, end_time: datetime) -> int:
    """
    Calculate the duration in whole minutes between two instants.

    Rounds to the nearest minute with ties going up, the same result
    PostgreSQL gives when casting ``EXTRACT(EPOCH ...) / 60`` to an integer.
    Python's ``round()`` is not used because it rounds ties to even.

    Args:
        start_time: Start instant
        end_time: End instant

    Returns:
        Duration in minutes (negative if end is before start)

    Examples:
        >>> start = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)
        >>> calculate_duration_minutes(start, start.replace(hour=10, minute=30))
        90
        >>> calculate_duration_minutes(start, start.replace(second=30))
        1
    """
    delta = ensure_utc(end_time) - ensure_utc(start_time)
    seconds = Decimal(delta.days * 86400 + delta.seconds) + Decimal(delta.microseconds) / Decimal(1_000_000)
    minutes = seconds / Decimal(60)
    # Away from zero on ties, matching numeric -> integer casts
    return int(minutes.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def elapsed_seconds(start_time: datetime, now: Optional[datetime] = None) -> int:
    """
    Whole seconds a running timer has been open.

    Used for the live display only; never persisted.
    """
    now = ensure_utc(now) if now is not None else utcnow()
    seconds = int((now - ensure_utc(start_time)).total_seconds())
    return max(seconds, 0)
