"""
WorkReady Engine — Cycle State Machine.

A worker's 7-day compliance cycle has no storage of its own: it is derived
from the latest assessment every time. Login never advances the cycle; only
a submission does.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING

from workready.config import settings
from workready.core.time_utils import days_between, to_local_date

if TYPE_CHECKING:
    from workready.data.models import Assessment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CycleState:
    cycle_start: date | None
    current_day: int
    streak_days: int
    completed: bool

    def to_dict(self) -> dict:
        return {
            "cycle_start": self.cycle_start.isoformat() if self.cycle_start else None,
            "current_day": self.current_day,
            "streak_days": self.streak_days,
            "cycle_completed": self.completed,
        }


def fresh_cycle(today: date, streak_days: int) -> CycleState:
    return CycleState(cycle_start=today, current_day=1, streak_days=streak_days, completed=False)


def derive_cycle_state(assessment: Assessment | None) -> CycleState | None:
    """Rebuild the cycle from the last-known assessment, or None if there is none."""
    if assessment is None:
        return None
    return CycleState(
        cycle_start=assessment.cycle_start,
        current_day=assessment.cycle_day or 1,
        streak_days=assessment.streak_days or 0,
        completed=bool(assessment.cycle_completed),
    )


# ---------------------------------------------------------------------------
# Login transitions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoginDecision:
    message: str
    cycle: CycleState
    day: int
    is_first_time_login: bool = False
    is_cycle_reset: bool = False
    cycle_completed: bool = False
    needs_new_login: bool = False


def _welcome() -> str:
    return f"Welcome! Your {settings.CYCLE_LENGTH_DAYS}-day Work Readiness cycle has started."


def evaluate_login(
    latest_assessment: Assessment | None,
    last_login: datetime | None,
    today: date,
) -> LoginDecision:
    """Decide what a successful login means for the worker's cycle.

    Checks, in order: no assessment yet, no login history, completed cycle,
    missed day (last login not today), otherwise continue unchanged.
    """
    state = derive_cycle_state(latest_assessment)

    if state is None:
        logger.info("First login: no assessments yet, fresh cycle from %s", today)
        return LoginDecision(_welcome(), fresh_cycle(today, 0), 1, is_first_time_login=True)

    if last_login is None:
        logger.info("First login: no login history, fresh cycle from %s", today)
        return LoginDecision(_welcome(), fresh_cycle(today, 0), 1, is_first_time_login=True)

    if state.completed:
        return LoginDecision(
            f"Cycle completed! Login again to start a new {settings.CYCLE_LENGTH_DAYS}-day cycle.",
            CycleState(cycle_start=None, current_day=0, streak_days=0, completed=True),
            0,
            cycle_completed=True,
            needs_new_login=True,
        )

    if state.cycle_start is None:
        return LoginDecision(_welcome(), fresh_cycle(today, 0), 1, is_first_time_login=True)

    last_login_day = to_local_date(last_login)
    if last_login_day != today:
        logger.info("Missed day: last login %s, today %s, cycle reset", last_login_day, today)
        return LoginDecision(
            "A new cycle has started.", fresh_cycle(today, 1), 1, is_cycle_reset=True,
        )

    logger.debug("Continuing cycle at day %d", state.current_day)
    return LoginDecision(
        f"Continue your cycle! Day {state.current_day} of {settings.CYCLE_LENGTH_DAYS}.",
        state,
        state.current_day,
    )


# ---------------------------------------------------------------------------
# Submission transitions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CycleTransition:
    state: CycleState
    kind: str          # "started" | "reset" | "continued"
    days_diff: int | None = None


def advance_cycle(
    previous: Assessment | None,
    today: date,
    cycle_length: int | None = None,
) -> CycleTransition:
    """Compute the cycle after a submission made on `today`.

    `previous` is the worker's latest assessment from an earlier day. A gap
    of more than one calendar day restarts the cycle at day 1 with a streak
    of 1 (today's submission counts).
    """
    if cycle_length is None:
        cycle_length = settings.CYCLE_LENGTH_DAYS

    state = derive_cycle_state(previous)
    if state is None or state.cycle_start is None or state.completed:
        return CycleTransition(fresh_cycle(today, 1), "started")

    days_diff = days_between(previous.submitted_at, today)
    if days_diff > 1:
        logger.info("Missed %d day(s) since last submission, cycle reset", days_diff - 1)
        return CycleTransition(fresh_cycle(today, 1), "reset", days_diff)

    streak = state.streak_days + 1
    continued = CycleState(
        cycle_start=state.cycle_start,
        current_day=state.current_day + 1,
        streak_days=streak,
        completed=streak >= cycle_length,
    )
    logger.debug("Consecutive submission: day %d, streak %d", continued.current_day, streak)
    return CycleTransition(continued, "continued", days_diff)


def submission_message(state: CycleState) -> str:
    """Human-readable status for a just-recorded submission."""
    if state.completed:
        return f"🎉 Cycle complete! Excellent work! {state.streak_days} consecutive days achieved!"
    if state.streak_days >= 2:
        return f"✅ Day {state.streak_days} complete! Keep the streak going!"
    if state.streak_days == 1 and state.current_day == 1:
        return "🚀 Day 1 complete! Great start to your new cycle!"
    return f"📝 Day {state.streak_days} complete! Building momentum!"
