"""
WorkReady Engine — Worker KPI Service.

Monthly assignment-based KPI for one worker: load the month's assignments
and assessments through the repository port, count outcomes, and hand the
counts to the weighted scorer.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import TYPE_CHECKING

from workready.core.errors import NotFoundError
from workready.core.kpi import (
    AssignmentKPI,
    calculate_assignment_kpi,
    quality_score_from_readiness,
)
from workready.core.time_utils import month_range, today, utc_now
from workready.data.models import (
    ROLE_WORKER,
    STATUS_COMPLETED,
    STATUS_OVERDUE,
    STATUS_PENDING,
    Assignment,
)

if TYPE_CHECKING:
    from workready.ports.repository_port import WorkReadinessRepository

logger = logging.getLogger(__name__)

RECENT_ASSIGNMENTS_LIMIT = 5


@dataclass
class MonthlyMetrics:
    total_assignments: int = 0
    completed_assignments: int = 0
    on_time_submissions: int = 0
    late_submissions: int = 0
    pending_assignments: int = 0
    overdue_assignments: int = 0
    completion_rate: int = 0
    on_time_rate: int = 0
    late_rate: int = 0
    quality_score: int = 0


@dataclass
class RecentAssignment:
    id: str
    assigned_date: str
    due_time: str
    status: str
    completed_at: str | None = None
    is_on_time: bool = False
    is_late: bool = False


@dataclass
class ReportPeriod:
    start: str
    end: str
    label: str


@dataclass
class MonthlyKPIReport:
    worker_id: str
    kpi: AssignmentKPI
    metrics: MonthlyMetrics
    period: ReportPeriod
    recent_assignments: list[RecentAssignment] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def _percent(part: int, whole: int) -> int:
    return round(part / whole * 100) if whole else 0


def _recent(assignment: Assignment) -> RecentAssignment:
    return RecentAssignment(
        id=assignment.id,
        assigned_date=assignment.assigned_date.isoformat(),
        due_time=assignment.due_time.isoformat(),
        status=assignment.status,
        completed_at=assignment.completed_at.isoformat() if assignment.completed_at else None,
        is_on_time=assignment.is_on_time,
        is_late=assignment.is_late,
    )


class WorkerKPIService:
    """Builds the monthly KPI report shown on the worker dashboard."""

    def __init__(
        self,
        repository: WorkReadinessRepository,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repo = repository
        self._clock = clock

    async def get_worker_monthly_kpi(
        self, worker_id: str, month: date | None = None,
    ) -> MonthlyKPIReport:
        """Assignment KPI for the calendar month containing `month` (default: this month).

        Pending assignments only earn the pending bonus while their due time is
        still ahead. Overdue assignments carry their due times into the scorer so
        the penalty decays with age; every assignment of the month is scanned for
        the recovery bonus.
        """
        worker = self._repo.get_worker_by_id(worker_id)
        if worker is None or worker.role != ROLE_WORKER:
            raise NotFoundError(f"Worker {worker_id} not found")

        now = self._clock()
        start, end = month_range(month or today(now))

        assignments = self._repo.get_assignments_for_worker(worker_id, start, end)
        assessments = self._repo.get_assessments_for_worker(worker_id, start, end)

        completed = [a for a in assignments if a.status == STATUS_COMPLETED]
        on_time = [a for a in completed if a.is_on_time]
        late = [a for a in completed if a.is_late]
        pending = [
            a for a in assignments if a.status == STATUS_PENDING and a.due_time > now
        ]
        overdue = [a for a in assignments if a.status == STATUS_OVERDUE]
        quality = quality_score_from_readiness(a.readiness_level for a in assessments)

        kpi = calculate_assignment_kpi(
            completed_assignments=len(completed),
            total_assignments=len(assignments),
            on_time_submissions=len(on_time),
            quality_score=quality,
            pending_assignments=len(pending),
            overdue_assignments=len(overdue),
            overdue_records=overdue,
            late_submissions=late,
            recovery_records=assignments,
            now=now,
        )

        total = len(assignments)
        metrics = MonthlyMetrics(
            total_assignments=total,
            completed_assignments=len(completed),
            on_time_submissions=len(on_time),
            late_submissions=len(late),
            pending_assignments=len(pending),
            overdue_assignments=len(overdue),
            completion_rate=_percent(len(completed), total),
            on_time_rate=_percent(len(on_time), total),
            late_rate=_percent(len(late), total),
            quality_score=round(quality),
        )

        newest_first = sorted(
            assignments, key=lambda a: (a.assigned_date, a.due_time), reverse=True,
        )
        logger.info(
            "Monthly KPI for %s (%s): %s %.2f over %d assignment(s)",
            worker_id, start.strftime("%Y-%m"), kpi.letter_grade, kpi.score, total,
        )
        return MonthlyKPIReport(
            worker_id=worker_id,
            kpi=kpi,
            metrics=metrics,
            period=ReportPeriod(
                start=start.isoformat(),
                end=end.isoformat(),
                label=start.strftime("%B %Y"),
            ),
            recent_assignments=[
                _recent(a) for a in newest_first[:RECENT_ASSIGNMENTS_LIMIT]
            ],
        )
