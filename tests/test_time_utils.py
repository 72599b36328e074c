"""Tests for workready.core.time_utils — organisation-day calendar helpers."""

from datetime import date, datetime, timedelta, timezone

from workready.core.time_utils import (
    date_key,
    day_bounds,
    days_between,
    ensure_aware,
    is_weekend,
    month_range,
    parse_timestamp,
    to_local_date,
    today,
    week_range,
    working_days_between,
    working_days_count,
)

# 2026-10-16 is a Friday, 2026-10-19 a Monday
FRIDAY = date(2026, 10, 16)
SATURDAY = date(2026, 10, 17)
SUNDAY = date(2026, 10, 18)
MONDAY = date(2026, 10, 19)


class TestToday:
    def test_late_utc_evening_is_next_local_day(self):
        now = datetime(2026, 10, 19, 17, 0, tzinfo=timezone.utc)
        assert today(now) == date(2026, 10, 20)

    def test_before_local_midnight_stays_on_same_day(self):
        now = datetime(2026, 10, 19, 15, 59, tzinfo=timezone.utc)
        assert today(now) == date(2026, 10, 19)

    def test_naive_datetime_treated_as_utc(self):
        assert today(datetime(2026, 10, 19, 16, 30)) == date(2026, 10, 20)

    def test_plain_date_unchanged(self):
        assert to_local_date(MONDAY) == MONDAY


class TestParsing:
    def test_trailing_z_accepted(self):
        ts = parse_timestamp("2026-10-19T08:00:00Z")
        assert ts == datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc)

    def test_offset_preserved(self):
        ts = parse_timestamp("2026-10-19T17:00:00+08:00")
        assert ts.utcoffset() == timedelta(hours=8)

    def test_ensure_aware_keeps_existing_tz(self):
        ts = datetime(2026, 10, 19, 8, tzinfo=timezone(timedelta(hours=3)))
        assert ensure_aware(ts) is ts

    def test_date_key_uses_local_day(self):
        assert date_key(datetime(2026, 10, 18, 17, 0, tzinfo=timezone.utc)) == "2026-10-19"


class TestDayArithmetic:
    def test_days_between_is_signed(self):
        assert days_between(MONDAY, date(2026, 10, 21)) == 2
        assert days_between(date(2026, 10, 21), MONDAY) == -2
        assert days_between(MONDAY, MONDAY) == 0

    def test_days_between_uses_local_calendar(self):
        # 23:00 and 01:00 local on consecutive days are one day apart
        late = datetime(2026, 10, 19, 15, 0, tzinfo=timezone.utc)
        early = datetime(2026, 10, 19, 17, 0, tzinfo=timezone.utc)
        assert days_between(late, early) == 1

    def test_weekend_detection(self):
        assert is_weekend(SATURDAY)
        assert is_weekend(SUNDAY)
        assert not is_weekend(FRIDAY)

    def test_friday_to_monday_is_one_working_day(self):
        assert working_days_between(FRIDAY, MONDAY) == 1
        assert working_days_between(MONDAY, FRIDAY) == -1

    def test_working_days_count_inclusive(self):
        assert working_days_count(date(2026, 10, 12), SUNDAY) == 5
        assert working_days_count(SATURDAY, SUNDAY) == 0


class TestRanges:
    def test_month_range_february(self):
        assert month_range(date(2026, 2, 10)) == (date(2026, 2, 1), date(2026, 2, 28))

    def test_month_range_leap_year(self):
        assert month_range(date(2028, 2, 29))[1] == date(2028, 2, 29)

    def test_week_range_starts_on_sunday(self):
        assert week_range(MONDAY) == (SUNDAY, date(2026, 10, 24))
        assert week_range(SUNDAY) == (SUNDAY, date(2026, 10, 24))

    def test_day_bounds_in_org_timezone(self):
        start, end = day_bounds(MONDAY)
        assert start.utcoffset() == timedelta(hours=8)
        assert end - start == timedelta(days=1)
        assert start.astimezone(timezone.utc) == datetime(2026, 10, 18, 16, tzinfo=timezone.utc)
