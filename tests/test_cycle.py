"""Tests for workready.core.cycle — login and submission transitions."""

from datetime import date, datetime, timezone

from conftest import local
from workready.core.cycle import (
    CycleState,
    advance_cycle,
    derive_cycle_state,
    evaluate_login,
    fresh_cycle,
    submission_message,
)
from workready.data.models import Assessment

TODAY = date(2026, 10, 19)
YESTERDAY = date(2026, 10, 18)


def _assessment(
    submitted_on: date,
    cycle_start: date | None = None,
    cycle_day: int = 1,
    streak_days: int = 1,
    cycle_completed: bool = False,
) -> Assessment:
    return Assessment(
        id="a1",
        worker_id="w1",
        team_leader_id="tl1",
        team="Alpha",
        readiness_level="fit",
        fatigue_level=2,
        mood="good",
        submitted_at=local(submitted_on),
        cycle_start=cycle_start,
        cycle_day=cycle_day,
        streak_days=streak_days,
        cycle_completed=cycle_completed,
    )


# ---------------------------------------------------------------------------
# Derived state
# ---------------------------------------------------------------------------


class TestDeriveCycleState:
    def test_none_without_assessment(self):
        assert derive_cycle_state(None) is None

    def test_copies_cycle_fields(self):
        state = derive_cycle_state(_assessment(YESTERDAY, date(2026, 10, 17), 2, 2))
        assert state == CycleState(date(2026, 10, 17), 2, 2, False)

    def test_to_dict(self):
        assert fresh_cycle(TODAY, 1).to_dict() == {
            "cycle_start": "2026-10-19",
            "current_day": 1,
            "streak_days": 1,
            "cycle_completed": False,
        }


# ---------------------------------------------------------------------------
# evaluate_login
# ---------------------------------------------------------------------------


class TestEvaluateLogin:
    def test_first_login_without_assessments(self):
        decision = evaluate_login(None, None, TODAY)
        assert decision.is_first_time_login
        assert decision.day == 1
        assert decision.cycle == CycleState(TODAY, 1, 0, False)
        assert "7-day" in decision.message

    def test_no_login_history(self):
        latest = _assessment(YESTERDAY, YESTERDAY)
        decision = evaluate_login(latest, None, TODAY)
        assert decision.is_first_time_login
        assert decision.cycle.streak_days == 0

    def test_completed_cycle_needs_new_login(self):
        latest = _assessment(YESTERDAY, date(2026, 10, 12), 7, 7, cycle_completed=True)
        decision = evaluate_login(latest, local(YESTERDAY), TODAY)
        assert decision.cycle_completed
        assert decision.needs_new_login
        assert decision.day == 0
        assert decision.cycle.cycle_start is None
        assert decision.message.startswith("Cycle completed!")

    def test_missing_cycle_start_starts_fresh(self):
        latest = _assessment(YESTERDAY, cycle_start=None)
        decision = evaluate_login(latest, local(TODAY), TODAY)
        assert decision.is_first_time_login
        assert decision.cycle.cycle_start == TODAY

    def test_missed_day_resets_with_streak_one(self):
        latest = _assessment(YESTERDAY, date(2026, 10, 16), 3, 3)
        decision = evaluate_login(latest, local(YESTERDAY), TODAY)
        assert decision.is_cycle_reset
        assert decision.message == "A new cycle has started."
        assert decision.cycle == CycleState(TODAY, 1, 1, False)

    def test_login_today_continues(self):
        latest = _assessment(YESTERDAY, date(2026, 10, 17), 3, 3)
        decision = evaluate_login(latest, local(TODAY, 8), TODAY)
        assert not decision.is_cycle_reset
        assert decision.day == 3
        assert decision.message == "Continue your cycle! Day 3 of 7."
        assert decision.cycle.streak_days == 3

    def test_last_login_compared_on_local_day(self):
        # 2026-10-18T16:30Z is 00:30 on 2026-10-19 local time
        latest = _assessment(YESTERDAY, YESTERDAY, 1, 1)
        last_login = datetime(2026, 10, 18, 16, 30, tzinfo=timezone.utc)
        decision = evaluate_login(latest, last_login, TODAY)
        assert not decision.is_cycle_reset
        assert decision.day == 1


# ---------------------------------------------------------------------------
# advance_cycle
# ---------------------------------------------------------------------------


class TestAdvanceCycle:
    def test_first_submission_starts_cycle(self):
        transition = advance_cycle(None, TODAY)
        assert transition.kind == "started"
        assert transition.state == CycleState(TODAY, 1, 1, False)

    def test_consecutive_day_continues(self):
        previous = _assessment(YESTERDAY, date(2026, 10, 17), 2, 2)
        transition = advance_cycle(previous, TODAY)
        assert transition.kind == "continued"
        assert transition.days_diff == 1
        assert transition.state == CycleState(date(2026, 10, 17), 3, 3, False)

    def test_gap_resets_cycle(self):
        previous = _assessment(date(2026, 10, 16), date(2026, 10, 14), 3, 3)
        transition = advance_cycle(previous, TODAY)
        assert transition.kind == "reset"
        assert transition.days_diff == 3
        assert transition.state == CycleState(TODAY, 1, 1, False)

    def test_seventh_day_completes(self):
        previous = _assessment(YESTERDAY, date(2026, 10, 13), 6, 6)
        transition = advance_cycle(previous, TODAY)
        assert transition.state.completed
        assert transition.state.streak_days == 7
        assert transition.state.current_day == 7

    def test_after_completion_starts_new_cycle(self):
        previous = _assessment(YESTERDAY, date(2026, 10, 12), 7, 7, cycle_completed=True)
        transition = advance_cycle(previous, TODAY)
        assert transition.kind == "started"
        assert transition.state == CycleState(TODAY, 1, 1, False)

    def test_custom_cycle_length(self):
        previous = _assessment(YESTERDAY, date(2026, 10, 17), 2, 2)
        assert advance_cycle(previous, TODAY, cycle_length=3).state.completed

    def test_streak_never_exceeds_current_day(self):
        previous = None
        day = date(2026, 10, 1)
        for offset in range(7):
            current = date(2026, 10, 1 + offset)
            state = advance_cycle(previous, current).state
            assert state.streak_days <= state.current_day
            previous = _assessment(
                current, state.cycle_start, state.current_day,
                state.streak_days, state.completed,
            )
        assert previous.cycle_start == day
        assert previous.cycle_completed


# ---------------------------------------------------------------------------
# submission_message
# ---------------------------------------------------------------------------


class TestSubmissionMessage:
    def test_complete(self):
        msg = submission_message(CycleState(TODAY, 7, 7, True))
        assert msg == "🎉 Cycle complete! Excellent work! 7 consecutive days achieved!"

    def test_streak_in_progress(self):
        msg = submission_message(CycleState(TODAY, 3, 3, False))
        assert msg == "✅ Day 3 complete! Keep the streak going!"

    def test_first_day(self):
        msg = submission_message(CycleState(TODAY, 1, 1, False))
        assert msg == "🚀 Day 1 complete! Great start to your new cycle!"

    def test_fallback(self):
        msg = submission_message(CycleState(TODAY, 2, 1, False))
        assert msg == "📝 Day 1 complete! Building momentum!"
