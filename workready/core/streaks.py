"""Streak calculator — pure business logic.

Turns a worker's submission timestamps into current and longest runs of
consecutive days. Two counting modes:

- calendar days (default): every day counts, a missed Saturday breaks a run;
- working days: Saturday/Sunday submissions are ignored and gaps are measured
  in working days, so Friday → Monday is consecutive.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable

from workready.config import settings
from workready.core.time_utils import (
    days_between,
    is_weekend,
    to_local_date,
    today as org_today,
    working_days_between,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreakResult:
    current: int = 0
    longest: int = 0


def calculate_streaks(
    timestamps: Iterable[datetime | date],
    today: date | None = None,
    count_weekends: bool | None = None,
) -> StreakResult:
    """Compute current and longest consecutive-day streaks.

    Args:
        timestamps: Submission timestamps (or dates) in any order.
            Several submissions on the same day count once.
        today: Reference day for staleness; defaults to the organisation's today.
        count_weekends: True walks calendar days, False walks working days.
            None uses settings.STREAK_COUNT_WEEKENDS.

    Returns:
        StreakResult. `current` is 0 when the latest submission is more than
        one day (or working day) older than `today`. In working-day mode a
        weekend `today` counts as the following Monday.
    """
    if count_weekends is None:
        count_weekends = settings.STREAK_COUNT_WEEKENDS
    if today is None:
        today = org_today()

    days = sorted({to_local_date(ts) for ts in timestamps})
    if not count_weekends:
        days = [d for d in days if not is_weekend(d)]
    if not days:
        return StreakResult()

    gap = days_between if count_weekends else working_days_between

    longest = 0
    running = 1
    for prev, curr in zip(days, days[1:]):
        if gap(prev, curr) == 1:
            running += 1
        else:
            longest = max(longest, running)
            running = 1
    longest = max(longest, running)

    if not count_weekends:
        # a weekend "today" is judged from the following Monday
        while is_weekend(today):
            today += timedelta(days=1)

    current = 0
    if gap(days[-1], today) <= 1:
        current = 1
        for later, earlier in zip(reversed(days), reversed(days[:-1])):
            if gap(earlier, later) != 1:
                break
            current += 1

    logger.debug(
        "Streaks over %d days (weekends=%s): current=%d longest=%d",
        len(days), count_weekends, current, longest,
    )
    return StreakResult(current=current, longest=longest)
