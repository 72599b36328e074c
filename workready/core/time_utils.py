"""Time & calendar helpers — pure business logic.

"Today" is always the calendar day in the organisation's fixed UTC offset
(settings.UTC_OFFSET_HOURS), never the server's local day.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta, timezone

from workready.config import settings


def org_timezone() -> timezone:
    """Return the organisation's fixed-offset timezone."""
    return timezone(timedelta(hours=settings.UTC_OFFSET_HOURS))


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(ts: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def parse_timestamp(raw: str | datetime) -> datetime:
    """Parse an ISO timestamp (a trailing "Z" is accepted) into an aware datetime."""
    if isinstance(raw, datetime):
        return ensure_aware(raw)
    text = raw.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return ensure_aware(datetime.fromisoformat(text))


def to_local_date(value: datetime | date) -> date:
    """Calendar day of a timestamp in the organisation's timezone.

    Plain dates are returned unchanged.
    """
    if isinstance(value, datetime):
        return ensure_aware(value).astimezone(org_timezone()).date()
    return value


def today(now: datetime | None = None) -> date:
    """Current calendar day in the organisation's timezone."""
    return to_local_date(now if now is not None else utc_now())


def date_key(value: datetime | date) -> str:
    """Canonical YYYY-MM-DD key of a timestamp or date."""
    return to_local_date(value).isoformat()


def days_between(d1: datetime | date, d2: datetime | date) -> int:
    """Signed whole calendar days from d1 to d2 (negative if d2 is earlier)."""
    return (to_local_date(d2) - to_local_date(d1)).days


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def working_days_between(d1: date, d2: date) -> int:
    """Signed count of Monday–Friday steps from d1 to d2.

    Friday → next Monday is 1. Weekend endpoints count as the following
    Monday's position minus one step.
    """
    if d2 < d1:
        return -working_days_between(d2, d1)
    steps = 0
    current = d1
    while current < d2:
        current += timedelta(days=1)
        if not is_weekend(current):
            steps += 1
    return steps


def working_days_count(start: date, end: date) -> int:
    """Number of Monday–Friday days in [start, end], inclusive."""
    count = 0
    current = start
    while current <= end:
        if not is_weekend(current):
            count += 1
        current += timedelta(days=1)
    return count


def month_range(day: date) -> tuple[date, date]:
    """First and last calendar day of the month containing `day`."""
    last = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def week_range(day: date) -> tuple[date, date]:
    """Sunday-to-Saturday week containing `day`."""
    # weekday(): Monday=0 … Sunday=6
    start = day - timedelta(days=(day.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Aware [start, end) instants of a calendar day in the organisation's timezone."""
    start = datetime(day.year, day.month, day.day, tzinfo=org_timezone())
    return start, start + timedelta(days=1)
