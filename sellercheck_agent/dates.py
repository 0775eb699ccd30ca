from __future__ import annotations

from datetime import datetime, timezone

from .models import TimeSince


def time_info(elapsed_ms: int) -> TimeSince:
    seconds = max(0, int(elapsed_ms)) // 1000
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24
    months = days // 30
    years = months // 12

    return TimeSince(
        seconds=seconds,
        minutes=minutes,
        hours=hours,
        days=days,
        months=months,
        years=years,
    )


def time_since(date: datetime, now: datetime | None = None) -> TimeSince:
    """Elapsed time from `date` until `now` (defaults to the current UTC time).

    Naive datetimes are taken as UTC. Dates in the future give all zeros.
    """
    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    elapsed = now - date
    return time_info(int(elapsed.total_seconds() * 1000))
