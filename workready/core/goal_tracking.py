"""
WorkReady Engine — Goal Tracking Service.

Stateless service layer for a single worker's login and submission events:
fetch facts through the repository port -> run the cycle state machine ->
persist the assessment and complete the assignment -> return structured
response objects.

The HTTP layer calls this service and renders the responses in its own way.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING

from workready.config import settings
from workready.core.assessment_form import parse_assessment_input
from workready.core.cycle import (
    CycleState,
    advance_cycle,
    derive_cycle_state,
    evaluate_login,
    submission_message,
)
from workready.core.errors import (
    AlreadySubmittedTodayError,
    NoActiveAssignmentError,
    NotFoundError,
)
from workready.core.kpi import ConsecutiveDayKPI, calculate_consecutive_day_kpi
from workready.core.streaks import StreakResult, calculate_streaks
from workready.core.time_utils import date_key, today, utc_now
from workready.data.models import ROLE_WORKER, Assessment

if TYPE_CHECKING:
    from workready.data.models import WorkerProfile
    from workready.ports.notification_port import NotificationPort
    from workready.ports.repository_port import WorkReadinessRepository

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Response types
# ---------------------------------------------------------------------------


@dataclass
class LoginResponse:
    message: str
    cycle: CycleState | None
    day: int
    is_first_time_login: bool = False
    is_cycle_reset: bool = False
    cycle_completed: bool = False
    needs_new_login: bool = False

    def to_dict(self) -> dict:
        data = asdict(self)
        data["cycle"] = self.cycle.to_dict() if self.cycle else None
        return data


@dataclass
class SubmissionResponse:
    message: str
    cycle: CycleState
    day: int
    cycle_complete: bool
    kpi: ConsecutiveDayKPI
    assessment_id: str
    is_late: bool = False
    is_update: bool = False

    def to_dict(self) -> dict:
        data = asdict(self)
        data["cycle"] = self.cycle.to_dict()
        return data


@dataclass
class DayProgress:
    date: str
    day_name: str
    completed: bool
    readiness_level: str | None = None
    fatigue_level: int | None = None
    mood: str | None = None
    submitted_at: str | None = None


@dataclass
class WeeklyProgress:
    completed_days: int
    total_work_days: int
    completion_rate: int
    kpi: ConsecutiveDayKPI
    week_label: str
    streaks: StreakResult
    top_performing_days: int = 0
    daily_breakdown: list[DayProgress] = field(default_factory=list)
    cycle: CycleState | None = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["cycle"] = self.cycle.to_dict() if self.cycle else None
        return data


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class GoalTrackingService:
    """Orchestrates the cycle state machine for login and submission events."""

    def __init__(
        self,
        repository: WorkReadinessRepository,
        notifier: NotificationPort | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repo = repository
        self._notifier = notifier
        self._clock = clock

    def _get_worker(self, worker_id: str) -> WorkerProfile:
        worker = self._repo.get_worker_by_id(worker_id)
        if worker is None or worker.role != ROLE_WORKER:
            raise NotFoundError(f"Worker {worker_id} not found")
        return worker

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    async def handle_login(self, worker_id: str) -> LoginResponse:
        """Report the worker's cycle after a successful login.

        Non-worker roles get a neutral response with no cycle.
        """
        user = self._repo.get_worker_by_id(worker_id)
        if user is None:
            raise NotFoundError(f"User {worker_id} not found")
        if user.role != ROLE_WORKER:
            return LoginResponse(message="No cycle needed for this role", cycle=None, day=0)

        current_day = today(self._clock())
        latest = self._repo.get_latest_assessment(worker_id)
        last_login = self._repo.get_last_successful_login(worker_id)
        decision = evaluate_login(latest, last_login, current_day)

        logger.info(
            "Login for %s on %s: day %d (first=%s reset=%s completed=%s)",
            worker_id, current_day, decision.day, decision.is_first_time_login,
            decision.is_cycle_reset, decision.cycle_completed,
        )
        return LoginResponse(
            message=decision.message,
            cycle=decision.cycle,
            day=decision.day,
            is_first_time_login=decision.is_first_time_login,
            is_cycle_reset=decision.is_cycle_reset,
            cycle_completed=decision.cycle_completed,
            needs_new_login=decision.needs_new_login,
        )

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def handle_submission(self, worker_id: str, data: dict) -> SubmissionResponse:
        """Record today's readiness assessment and advance the cycle.

        Requires a pending or overdue assignment for today, unless the worker
        already submitted today, in which case the assessment is updated in
        place and the cycle is left where it was.

        A same-day resubmission needs no active assignment: the first
        submission already completed it, so only the earlier assessment is
        required.

        Raises:
            NotFoundError: unknown worker.
            AssessmentValidationError: malformed input.
            AlreadySubmittedTodayError: resubmission while it is disabled.
            NoActiveAssignmentError: nothing assigned for today and no earlier
                submission today to update.
        """
        worker = self._get_worker(worker_id)
        form = parse_assessment_input(data)

        now = self._clock()
        current_day = today(now)

        existing = self._repo.get_assessment_for_date(worker_id, current_day)
        if existing is not None and not settings.ALLOW_SAME_DAY_RESUBMISSION:
            raise AlreadySubmittedTodayError(
                f"Worker {worker_id} already submitted on {current_day.isoformat()}"
            )

        assignment = self._repo.get_active_assignment_for_date(worker_id, current_day)
        if assignment is None and existing is None:
            raise NoActiveAssignmentError(
                "No active work readiness assignment found for today. "
                "Please wait for your team leader to assign you."
            )

        is_late = assignment is not None and now > assignment.due_time
        if is_late:
            logger.warning(
                "Assignment %s for %s is overdue (due %s), accepting late submission",
                assignment.id, worker_id, assignment.due_time.isoformat(),
            )

        if existing is not None:
            state = derive_cycle_state(existing)
            logger.info("Resubmission for %s on %s, cycle unchanged", worker_id, current_day)
        else:
            previous = self._repo.get_latest_assessment(worker_id)
            transition = advance_cycle(previous, current_day)
            state = transition.state
            logger.info(
                "Cycle %s for %s: day %d, streak %d, completed=%s",
                transition.kind, worker_id, state.current_day,
                state.streak_days, state.completed,
            )

        team_leader_id = self._resolve_team_leader(worker)
        record = Assessment(
            id=existing.id if existing else None,
            worker_id=worker_id,
            team_leader_id=team_leader_id,
            team=worker.team,
            readiness_level=form.readiness_level,
            fatigue_level=form.fatigue_level,
            mood=form.mood,
            pain_discomfort=form.pain_discomfort,
            pain_areas=list(form.pain_areas),
            notes=form.notes,
            submitted_at=now,
            cycle_start=state.cycle_start,
            cycle_day=state.current_day,
            streak_days=state.streak_days,
            cycle_completed=state.completed,
        )
        if existing is not None:
            saved = self._repo.update_assessment(existing.id, record)
        else:
            saved = self._repo.create_assessment(record)

        if assignment is not None:
            self._repo.mark_assignment_completed(assignment.id, saved.id, now)

        response = SubmissionResponse(
            message=submission_message(state),
            cycle=state,
            day=state.streak_days,
            cycle_complete=state.completed,
            kpi=calculate_consecutive_day_kpi(state.streak_days),
            assessment_id=saved.id,
            is_late=is_late,
            is_update=existing is not None,
        )
        await self._notify_team_leader(worker, team_leader_id, response)
        return response

    def _resolve_team_leader(self, worker: WorkerProfile) -> str | None:
        """Direct assignment first, then whoever manages the worker's team."""
        if worker.team_leader_id:
            return worker.team_leader_id
        if worker.team:
            leader_id = self._repo.find_team_leader_for_team(worker.team)
            if leader_id:
                logger.debug("Team leader %s found for team %s", leader_id, worker.team)
                return leader_id
            logger.warning("No team leader found for %s (team %s)", worker.id, worker.team)
            return None
        logger.warning("Worker %s has no team assigned", worker.id)
        return None

    async def _notify_team_leader(
        self,
        worker: WorkerProfile,
        team_leader_id: str | None,
        response: SubmissionResponse,
    ) -> None:
        if self._notifier is None or team_leader_id is None or response.is_update:
            return
        messages: list[str] = []
        if response.cycle_complete:
            messages.append(
                f"{worker.display_name} completed a {response.cycle.streak_days}-day "
                "work readiness cycle."
            )
        if response.is_late:
            messages.append(f"{worker.display_name} submitted today's work readiness late.")
        for text in messages:
            try:
                await self._notifier.send_message(team_leader_id, text)
            except Exception as exc:
                logger.error("Failed to notify team leader %s: %s", team_leader_id, exc)

    # ------------------------------------------------------------------
    # Weekly progress
    # ------------------------------------------------------------------

    async def get_worker_weekly_progress(self, worker_id: str) -> WeeklyProgress:
        """Seven-day breakdown of the worker's current cycle."""
        self._get_worker(worker_id)
        current_day = today(self._clock())
        cycle_length = settings.CYCLE_LENGTH_DAYS

        latest = self._repo.get_latest_assessment(worker_id)
        if latest is None or latest.cycle_start is None:
            return WeeklyProgress(
                completed_days=0,
                total_work_days=cycle_length,
                completion_rate=0,
                kpi=calculate_consecutive_day_kpi(0),
                week_label="No Active Cycle",
                streaks=StreakResult(),
            )

        cycle_start = latest.cycle_start
        cycle_end = cycle_start + timedelta(days=cycle_length - 1)
        assessments = self._repo.get_assessments_for_worker(worker_id, cycle_start, cycle_end)
        by_day = {date_key(a.submitted_at): a for a in assessments}

        breakdown = [
            _day_progress(cycle_start + timedelta(days=offset), by_day)
            for offset in range(cycle_length)
        ]
        consecutive = latest.streak_days or 0

        return WeeklyProgress(
            completed_days=consecutive,
            total_work_days=cycle_length,
            completion_rate=round(consecutive / cycle_length * 100),
            kpi=calculate_consecutive_day_kpi(consecutive),
            week_label=f"Cycle Day {latest.cycle_day or 1} of {cycle_length}",
            streaks=calculate_streaks(
                [a.submitted_at for a in assessments], today=current_day,
            ),
            top_performing_days=sum(
                1 for d in breakdown if d.completed and d.readiness_level == "fit"
            ),
            daily_breakdown=breakdown,
            cycle=derive_cycle_state(latest),
        )


def _day_progress(day: date, by_day: dict[str, Assessment]) -> DayProgress:
    assessment = by_day.get(day.isoformat())
    if assessment is None:
        return DayProgress(date=day.isoformat(), day_name=day.strftime("%a"), completed=False)
    return DayProgress(
        date=day.isoformat(),
        day_name=day.strftime("%a"),
        completed=True,
        readiness_level=assessment.readiness_level,
        fatigue_level=assessment.fatigue_level,
        mood=assessment.mood,
        submitted_at=assessment.submitted_at.isoformat(),
    )
