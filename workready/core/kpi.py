"""
WorkReady Engine — KPI Scorer.

Turns compliance facts into bounded scores, letter grades and ratings:

- consecutive-day KPI: banded by the worker's current streak;
- assignment KPI: a weighted blend of completion, timeliness, lateness and
  readiness quality, with a shift-decayed overdue penalty and a recovery
  bonus for strong recent completion;
- completion-rate and weekly team KPIs used by the older dashboards.

Scores never fail the dashboard: numeric inputs are clamped, and only a
non-numeric or non-finite input raises InvalidKPIInputError.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sized
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from workready.config import settings
from workready.core.errors import InvalidKPIInputError
from workready.core.time_utils import ensure_aware, utc_now
from workready.data.models import STATUS_COMPLETED

if TYPE_CHECKING:
    from workready.data.models import Assignment

logger = logging.getLogger(__name__)

GRAY = "#6b7280"
AMBER = "#f59e0b"
BLUE = "#3b82f6"
GREEN = "#10b981"
LIGHT_GREEN = "#22c55e"
YELLOW = "#eab308"
ORANGE = "#f97316"
RED = "#ef4444"
DARK_RED = "#dc2626"

MAX_CYCLE_DAYS = 7

FORMULA_LATE_PENALTY = "v2_late_penalty"
FORMULA_LATE_BONUS = "v1_late_bonus"

# Weights of the assignment KPI
COMPLETION_WEIGHT = 0.50
ON_TIME_WEIGHT = 0.25
LATE_WEIGHT = 0.15
QUALITY_WEIGHT = 0.10

READINESS_QUALITY = {"fit": 100, "minor": 70, "not_fit": 30}
UNKNOWN_READINESS_QUALITY = 50


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass
class KPIResult:
    rating: str
    score: float
    color: str
    description: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ConsecutiveDayKPI(KPIResult):
    consecutive_days: int = 0
    max_days: int = MAX_CYCLE_DAYS


@dataclass
class CompletionRateKPI(KPIResult):
    completion_rate: float = 0.0
    max_rate: int = 100


@dataclass
class TeamKPI(KPIResult):
    weekly_submissions: int = 0
    total_members: int = 0
    weekly_submission_rate: int = 0


@dataclass
class KPIBreakdown:
    """Signed contribution of each term to the weighted score."""

    completion_score: float = 0.0
    on_time_score: float = 0.0
    late_score: float = 0.0         # negative under the canonical formula
    quality_score: float = 0.0
    pending_bonus: float = 0.0
    overdue_penalty: float = 0.0    # subtracted
    recovery_bonus: float = 0.0
    shift_based_decay_applied: bool = False


@dataclass
class AssignmentKPI(KPIResult):
    letter_grade: str = "N/A"
    completion_rate: float = 0.0
    on_time_rate: float = 0.0
    late_rate: float = 0.0
    quality_score: float = 0.0
    completed_assignments: int = 0
    total_assignments: int = 0
    late_submissions: int = 0
    formula: str = FORMULA_LATE_PENALTY
    breakdown: KPIBreakdown = field(default_factory=KPIBreakdown)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _as_number(name: str, value: object) -> float:
    """Accept finite ints/floats (not bools), reject anything else."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidKPIInputError(f"{name} must be numeric, got {type(value).__name__}")
    try:
        number = float(value)
    except OverflowError:
        number = math.inf
    if not math.isfinite(number):
        raise InvalidKPIInputError(f"{name} must be a finite number, got {value}")
    return number


def _as_count(name: str, value: object) -> float:
    """Numeric count clamped at zero; a sized collection counts its items."""
    if isinstance(value, Sized) and not isinstance(value, (str, bytes)):
        return float(len(value))
    return max(0.0, _as_number(name, value))


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


# ---------------------------------------------------------------------------
# (a) Consecutive-day KPI
# ---------------------------------------------------------------------------

# days -> (rating, score, color, description)
_CONSECUTIVE_BANDS: dict[int, tuple[str, int, str, str]] = {
    0: ("Not Started", 0, GRAY,
        "No consecutive days completed yet. Start your work readiness journey!"),
    1: ("Getting Started", 20, AMBER,
        "Great start! Day 1 complete. Keep building momentum!"),
    2: ("Building Momentum", 40, AMBER,
        "Excellent! 2 consecutive days. You're building good habits!"),
    3: ("Good Progress", 60, BLUE,
        "Very good! 3 consecutive days. You're developing consistency!"),
    4: ("Strong Performance", 75, BLUE,
        "Outstanding! 4 consecutive days. You're showing strong commitment!"),
    5: ("Excellent", 85, GREEN,
        "Fantastic! 5 consecutive days. You're almost at the finish line!"),
    6: ("Outstanding", 95, GREEN,
        "Amazing! 6 consecutive days. One more day to complete your cycle!"),
    7: ("Perfect", 100, GREEN,
        "Perfect! 7+ consecutive days completed! You've mastered the work readiness cycle!"),
}


def calculate_consecutive_day_kpi(consecutive_days: int) -> ConsecutiveDayKPI:
    """Granular consecutive-day KPI (canonical): one band per day, 7+ is Perfect."""
    days = int(_as_count("consecutive_days", consecutive_days))
    rating, score, color, description = _CONSECUTIVE_BANDS[min(days, MAX_CYCLE_DAYS)]
    return ConsecutiveDayKPI(
        rating=rating, score=score, color=color, description=description,
        consecutive_days=days,
    )


def calculate_legacy_consecutive_day_kpi(consecutive_days: int) -> ConsecutiveDayKPI:
    """Older four-band consecutive-day KPI; fewer than 3 days earns nothing."""
    days = int(_as_count("consecutive_days", consecutive_days))
    proportional = _round_half_up(days / MAX_CYCLE_DAYS * 100)
    if days >= MAX_CYCLE_DAYS:
        rating, score, color = "Excellent", 100, GREEN
        description = "Outstanding! Complete 7-day cycle achieved."
    elif days >= 5:
        rating, score, color = "Good", proportional, LIGHT_GREEN
        description = "Good progress! Keep going to complete the cycle."
    elif days >= 3:
        rating, score, color = "Average", proportional, YELLOW
        description = "Average progress. Focus on consistency."
    else:
        rating, score, color = "No KPI Points", 0, RED
        description = "Need at least 3 consecutive days for KPI points."
    return ConsecutiveDayKPI(
        rating=rating, score=score, color=color, description=description,
        consecutive_days=days,
    )


CONSECUTIVE_DAY_FORMULAS = {
    "granular": calculate_consecutive_day_kpi,
    "legacy": calculate_legacy_consecutive_day_kpi,
}


def calculate_kpi(consecutive_days: int, formula: str = "granular") -> ConsecutiveDayKPI:
    """Consecutive-day KPI using a named formula ("granular" or "legacy")."""
    try:
        scorer = CONSECUTIVE_DAY_FORMULAS[formula]
    except KeyError:
        raise ValueError(f"Unknown consecutive-day KPI formula: {formula!r}") from None
    return scorer(consecutive_days)


# ---------------------------------------------------------------------------
# (b) Assignment-based weighted KPI
# ---------------------------------------------------------------------------

# (minimum score, letter grade, rating, color, description), highest first
_GRADE_BANDS: tuple[tuple[float, str, str, str, str], ...] = (
    (95, "A+", "Excellent", GREEN,
     "Outstanding performance! Perfect assignment completion and quality."),
    (90, "A", "Excellent", GREEN,
     "Excellent performance! Perfect assignment completion and quality."),
    (85, "A-", "Very Good", GREEN,
     "Very good performance! Keep up the excellent work."),
    (80, "B+", "Good", BLUE, "Good performance! Keep up the consistency."),
    (75, "B", "Good", BLUE, "Good performance! Keep up the consistency."),
    (70, "B-", "Above Average", BLUE, "Above average performance. Good progress."),
    (65, "C+", "Average", YELLOW,
     "Average performance. Focus on completing more assignments."),
    (60, "C", "Average", YELLOW,
     "Average performance. Focus on completing more assignments."),
    (55, "C-", "Below Average", ORANGE, "Below average performance. Needs improvement."),
    (50, "D", "Below Average", ORANGE, "Below average performance. Needs improvement."),
)
_FAILING_GRADE = ("F", "Needs Improvement", RED,
                  "Poor performance. Immediate attention required.")


def grade_for_score(score: float) -> tuple[str, str, str, str]:
    """Return (letter_grade, rating, color, description) for a weighted score."""
    for minimum, letter, rating, color, description in _GRADE_BANDS:
        if score >= minimum:
            return letter, rating, color, description
    return _FAILING_GRADE


def overdue_decay_multiplier(shifts_overdue: int) -> float:
    """Penalty weight of one overdue assignment, decaying with age in shifts."""
    if shifts_overdue > 30:
        return 0.1
    if shifts_overdue > 10:
        return 0.3
    if shifts_overdue > 3:
        return 0.6
    return 1.0


def shifts_overdue(due_time: datetime, now: datetime, shift_hours: int | None = None) -> int:
    """Whole shifts elapsed since `due_time` (hours are floored first)."""
    if shift_hours is None:
        shift_hours = settings.SHIFT_HOURS
    hours = math.floor((ensure_aware(now) - ensure_aware(due_time)).total_seconds() / 3600)
    return hours // shift_hours


def _overdue_penalty(
    overdue_count: float,
    records: list[Assignment],
    total: float,
    now: datetime,
) -> float:
    if records:
        weight = sum(
            overdue_decay_multiplier(shifts_overdue(record.due_time, now))
            for record in records
        )
        return min(10.0, weight / total * 10)
    return min(10.0, overdue_count / total * 10)


def _recovery_bonus(records: Iterable[Assignment], total: float, now: datetime) -> int:
    window_start = ensure_aware(now) - timedelta(days=settings.RECOVERY_WINDOW_DAYS)
    recent = sum(
        1 for record in records
        if record.status == STATUS_COMPLETED
        and record.completed_at is not None
        and ensure_aware(record.completed_at) >= window_start
    )
    rate = recent / total * 100
    if rate > 80:
        return 3
    if rate > 60:
        return 2
    if rate > 40:
        return 1
    return 0


def _no_assignments(formula: str) -> AssignmentKPI:
    return AssignmentKPI(
        rating="No Assignments",
        score=0,
        color=GRAY,
        description="No work readiness assignments given yet.",
        letter_grade="N/A",
        formula=formula,
    )


def calculate_assignment_kpi(
    completed_assignments: int,
    total_assignments: int,
    on_time_submissions: int = 0,
    quality_score: float = 0,
    pending_assignments: int = 0,
    overdue_assignments: int = 0,
    overdue_records: Iterable[Assignment] = (),
    late_submissions: int | Sized = 0,
    recovery_records: Iterable[Assignment] | None = None,
    now: datetime | None = None,
    formula: str | None = None,
) -> AssignmentKPI:
    """Weighted assignment KPI for one worker over a reporting period.

    Args:
        completed_assignments: Assignments with status completed.
        total_assignments: All assignments in the period. Zero short-circuits
            to a "No Assignments" result.
        on_time_submissions: Completed at or before their due time.
        quality_score: 0–100 readiness quality (see quality_score_from_readiness).
        pending_assignments: Pending assignments whose due time is still ahead.
        overdue_assignments: Overdue count, used when no overdue_records are given.
        overdue_records: Overdue assignments with due times; enables shift decay.
        late_submissions: Count (or collection) of assignments completed late.
        recovery_records: Assignments scanned for recent completions; defaults
            to overdue_records.
        now: Reference instant for decay and the recovery window.
        formula: "v2_late_penalty" (canonical) or "v1_late_bonus";
            defaults to settings.KPI_FORMULA.

    Returns:
        AssignmentKPI with score clamped to [0, 100] and a signed breakdown.
    """
    if formula is None:
        formula = settings.KPI_FORMULA
    if formula not in (FORMULA_LATE_PENALTY, FORMULA_LATE_BONUS):
        raise ValueError(f"Unknown assignment KPI formula: {formula!r}")

    completed = _as_count("completed_assignments", completed_assignments)
    total = _as_count("total_assignments", total_assignments)
    on_time = _as_count("on_time_submissions", on_time_submissions)
    quality = _as_number("quality_score", quality_score)
    pending = _as_count("pending_assignments", pending_assignments)
    overdue = _as_count("overdue_assignments", overdue_assignments)
    late = _as_count("late_submissions", late_submissions)

    if total == 0:
        return _no_assignments(formula)

    if now is None:
        now = utc_now()
    overdue_list = list(overdue_records)
    recovery_list = overdue_list if recovery_records is None else list(recovery_records)

    completion_rate = _clamp(completed / total * 100)
    on_time_rate = _clamp(on_time / total * 100)
    validated_quality = _clamp(quality)
    if late > 0:
        on_time_rate = max(0.0, on_time_rate - late / total * 50)
        validated_quality = max(0.0, validated_quality - late / total * 20)

    pending_bonus = min(5.0, pending / total * 5)
    overdue_penalty = _overdue_penalty(overdue, overdue_list, total, now)
    recovery_bonus = _recovery_bonus(recovery_list, total, now) if completed > 0 else 0
    late_rate = _clamp(late / total * 100)

    late_sign = -1 if formula == FORMULA_LATE_PENALTY else 1
    breakdown = KPIBreakdown(
        completion_score=completion_rate * COMPLETION_WEIGHT,
        on_time_score=on_time_rate * ON_TIME_WEIGHT,
        late_score=late_sign * late_rate * LATE_WEIGHT,
        quality_score=validated_quality * QUALITY_WEIGHT,
        pending_bonus=pending_bonus,
        overdue_penalty=overdue_penalty,
        recovery_bonus=recovery_bonus,
        shift_based_decay_applied=bool(overdue_list),
    )
    weighted = (
        breakdown.completion_score
        + breakdown.on_time_score
        + breakdown.late_score
        + breakdown.quality_score
        + breakdown.pending_bonus
        - breakdown.overdue_penalty
        + breakdown.recovery_bonus
    )
    score = _clamp(weighted)
    letter, rating, color, description = grade_for_score(score)

    logger.debug(
        "Assignment KPI (%s): completion=%.2f on_time=%.2f late=%.2f quality=%.2f "
        "pending=+%.2f overdue=-%.2f recovery=+%d -> %.2f (%s)",
        formula, completion_rate, on_time_rate, late_rate, validated_quality,
        pending_bonus, overdue_penalty, recovery_bonus, weighted, letter,
    )

    return AssignmentKPI(
        rating=rating,
        score=round(score, 2),
        color=color,
        description=description,
        letter_grade=letter,
        completion_rate=round(completion_rate, 2),
        on_time_rate=round(on_time_rate, 2),
        late_rate=round(late_rate, 2),
        quality_score=round(validated_quality, 2),
        completed_assignments=int(completed),
        total_assignments=int(total),
        late_submissions=int(late),
        formula=formula,
        breakdown=breakdown,
    )


def quality_score_from_readiness(readiness_levels: Iterable[str | None]) -> float:
    """Average readiness quality: fit=100, minor=70, not_fit=30, anything else 50.

    Returns 0 when there are no submissions.
    """
    scores = [
        READINESS_QUALITY.get(level, UNKNOWN_READINESS_QUALITY)
        for level in readiness_levels
    ]
    if not scores:
        return 0.0
    return sum(scores) / len(scores)


# ---------------------------------------------------------------------------
# Completion-rate and team KPIs
# ---------------------------------------------------------------------------


def calculate_completion_rate_kpi(
    completion_rate: float,
    current_day: int | None = None,
    total_assessments: int | None = None,
) -> CompletionRateKPI:
    """Completion-rate KPI for cycle dashboards.

    No assessments at all is "Not Started"; the first two cycle days are
    "On Track" with no points; from day 3 the score follows the rate.
    """
    rate = _clamp(_as_number("completion_rate", completion_rate))

    if rate == 0 and not total_assessments:
        return CompletionRateKPI(
            rating="Not Started", score=0, color=GRAY,
            description="KPI rating not yet started. Begin your work readiness assessments.",
            completion_rate=rate,
        )
    if current_day is not None and current_day <= 2:
        return CompletionRateKPI(
            rating="On Track", score=0, color=BLUE,
            description="Just started the cycle. Keep going!",
            completion_rate=rate,
        )

    if rate >= 100:
        rating, color = "Excellent", GREEN
        description = "Outstanding! Perfect completion rate achieved."
    elif rate >= 70:
        rating, color = "Good", LIGHT_GREEN
        description = "Good progress! Keep up the consistency."
    elif rate >= 50:
        rating, color = "Average", YELLOW
        description = "Average progress. Focus on consistency."
    else:
        rating, color = "Needs Improvement", RED
        description = "Below average performance. Needs attention."
    return CompletionRateKPI(
        rating=rating, score=_round_half_up(rate), color=color,
        description=description, completion_rate=rate,
    )


def calculate_weekly_team_kpi(
    weekly_submission_rate: float,
    weekly_submissions: int,
    total_members: int,
) -> TeamKPI:
    """Team rating from the share of members who submitted this week."""
    rate = _clamp(_as_number("weekly_submission_rate", weekly_submission_rate))
    submitted = int(_as_count("weekly_submissions", weekly_submissions))
    members = int(_as_count("total_members", total_members))
    pct = _round_half_up(rate)
    summary = f"{submitted}/{members} members submitted work readiness this week ({pct}%)."

    if rate >= 90:
        rating, color, description = "Excellent", GREEN, f"Excellent! {summary}"
    elif rate >= 75:
        rating, color, description = "Good", BLUE, f"Good performance! {summary}"
    elif rate >= 60:
        rating, color, description = "Average", AMBER, f"Average performance. {summary}"
    elif rate >= 40:
        rating, color, description = "Needs Improvement", RED, f"Needs improvement. Only {summary}"
    else:
        rating, color, description = "Poor", DARK_RED, f"Poor performance. Only {summary}"

    return TeamKPI(
        rating=rating, score=pct, color=color, description=description,
        weekly_submissions=submitted, total_members=members,
        weekly_submission_rate=pct,
    )
