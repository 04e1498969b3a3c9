"""Time Windows — date arithmetic for stats, analytics, and cache metadata.

Invariants:
    - All datetimes are timezone-aware UTC
    - `now` is always passed in — no clock reads here, callers own the clock
    - iter_days(start, end) is inclusive on both ends and never steps past `end`
"""

from collections.abc import Iterator
from datetime import date, datetime, time, timedelta, timezone


def window_start(now: datetime, days: int) -> datetime:
    """Start of a trailing window of `days` days ending at `now`."""
    return now - timedelta(days=days)


def start_of_day(now: datetime) -> datetime:
    """Midnight UTC of the day containing `now`."""
    return datetime.combine(now.astimezone(timezone.utc).date(), time.min, tzinfo=timezone.utc)


def cache_expiry_ms(now: datetime, seconds: int) -> int:
    """Epoch milliseconds at which a payload fetched at `now` goes stale."""
    return int((now.timestamp() + seconds) * 1000)


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every calendar day from start to end, inclusive."""
    for offset in range((end - start).days + 1):
        yield start + timedelta(days=offset)
