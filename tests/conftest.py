"""Shared test fixtures and configuration.

Pins the environment BEFORE any workready imports so workready.config
builds predictable settings, and provides a temp-file database plus a
controllable clock.
"""

import os

# Patch env vars BEFORE any workready imports
os.environ["DATABASE_PATH"] = ":memory:"
os.environ["UTC_OFFSET_HOURS"] = "8"
os.environ["CYCLE_LENGTH_DAYS"] = "7"
os.environ["SHIFT_HOURS"] = "8"
os.environ["RECOVERY_WINDOW_DAYS"] = "7"
os.environ["STREAK_COUNT_WEEKENDS"] = "true"
os.environ["ALLOW_SAME_DAY_RESUBMISSION"] = "true"
os.environ["KPI_FORMULA"] = "v2_late_penalty"

from datetime import date, datetime, timedelta, timezone

import pytest

ORG_TZ = timezone(timedelta(hours=8))


def local(day: date, hour: int = 9, minute: int = 0) -> datetime:
    """Aware datetime at the given wall-clock time in the organisation's timezone."""
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=ORG_TZ)


class FakeClock:
    """Callable clock that tests can move forward."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, days: int = 0, hours: int = 0) -> None:
        self.now += timedelta(days=days, hours=hours)


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_workready.db")


@pytest.fixture
def workready_db(tmp_db_path):
    """Return a WorkReadinessDB instance backed by a temp file."""
    from workready.data.db import WorkReadinessDB
    return WorkReadinessDB(db_path=tmp_db_path)


@pytest.fixture
def clock():
    """Clock starting Monday 2026-10-19 at 09:00 local time."""
    return FakeClock(local(date(2026, 10, 19)))
