"""Tests for workready.core.worker_kpi — monthly assignment KPI report."""

from datetime import date, timedelta
from unittest.mock import MagicMock

import pytest

from conftest import FakeClock, local
from workready.core.errors import NotFoundError
from workready.core.worker_kpi import MonthlyKPIReport, WorkerKPIService
from workready.data.models import ROLE_TEAM_LEADER, Assessment, Assignment, WorkerProfile

NOW = local(date(2026, 10, 20), 12)


def _seed_month(db):
    """Ten assignments, 11–20 October.

    11–17 completed on time, 18 completed late, 19 overdue, 20 still pending.
    """
    db.add_worker("w1", team="Alpha")
    for day_of_month in range(11, 21):
        day = date(2026, 10, day_of_month)
        assignment = db.add_assignment("w1", day, local(day, 17), team_leader_id="tl1")
        if day_of_month > 18:
            continue
        completed_at = local(day, 18) if day_of_month == 18 else local(day, 9)
        saved = db.create_assessment(Assessment(
            id=None, worker_id="w1", team_leader_id="tl1", team="Alpha",
            readiness_level="fit", fatigue_level=2, mood="good",
            submitted_at=completed_at,
        ))
        db.mark_assignment_completed(assignment.id, saved.id, completed_at)
    db.mark_overdue_assignments(NOW)


class TestMonthlyKPI:
    @pytest.mark.asyncio
    async def test_month_report(self, workready_db):
        _seed_month(workready_db)
        service = WorkerKPIService(workready_db, clock=FakeClock(NOW))

        report = await service.get_worker_monthly_kpi("w1")

        assert isinstance(report, MonthlyKPIReport)
        metrics = report.metrics
        assert metrics.total_assignments == 10
        assert metrics.completed_assignments == 8
        assert metrics.on_time_submissions == 7
        assert metrics.late_submissions == 1
        assert metrics.pending_assignments == 1
        assert metrics.overdue_assignments == 1
        assert metrics.completion_rate == 80
        assert metrics.quality_score == 100

        # 40 + 16.25 - 1.5 + 9.8 + 0.5 - 1.0 + 1 (recovery)
        kpi = report.kpi
        assert kpi.score == pytest.approx(65.05)
        assert kpi.letter_grade == "C+"
        assert kpi.breakdown.recovery_bonus == 1
        assert kpi.breakdown.shift_based_decay_applied

    @pytest.mark.asyncio
    async def test_period_and_recent_assignments(self, workready_db):
        _seed_month(workready_db)
        service = WorkerKPIService(workready_db, clock=FakeClock(NOW))

        report = await service.get_worker_monthly_kpi("w1")

        assert report.period.start == "2026-10-01"
        assert report.period.end == "2026-10-31"
        assert report.period.label == "October 2026"
        assert [r.assigned_date for r in report.recent_assignments] == [
            "2026-10-20", "2026-10-19", "2026-10-18", "2026-10-17", "2026-10-16",
        ]
        assert report.recent_assignments[2].is_late
        assert report.recent_assignments[3].is_on_time
        assert report.to_dict()["kpi"]["letter_grade"] == "C+"

    @pytest.mark.asyncio
    async def test_other_month_has_no_assignments(self, workready_db):
        _seed_month(workready_db)
        service = WorkerKPIService(workready_db, clock=FakeClock(NOW))

        report = await service.get_worker_monthly_kpi("w1", month=date(2026, 9, 1))

        assert report.kpi.rating == "No Assignments"
        assert report.kpi.score == 0
        assert report.metrics.total_assignments == 0
        assert report.recent_assignments == []

    @pytest.mark.asyncio
    async def test_unknown_worker(self, workready_db):
        service = WorkerKPIService(workready_db, clock=FakeClock(NOW))
        with pytest.raises(NotFoundError):
            await service.get_worker_monthly_kpi("ghost")

    @pytest.mark.asyncio
    async def test_team_leader_has_no_worker_kpi(self, workready_db):
        workready_db.add_worker("tl1", role=ROLE_TEAM_LEADER)
        service = WorkerKPIService(workready_db, clock=FakeClock(NOW))
        with pytest.raises(NotFoundError):
            await service.get_worker_monthly_kpi("tl1")


class TestPendingCounting:
    @pytest.mark.asyncio
    async def test_past_due_pending_earns_no_bonus(self):
        repo = MagicMock()
        repo.get_worker_by_id.return_value = WorkerProfile(id="w1", role="worker")
        repo.get_assignments_for_worker.return_value = [
            Assignment(
                id="a1", worker_id="w1", team_leader_id="tl1",
                assigned_date=date(2026, 10, 20),
                due_time=NOW - timedelta(hours=1),
            ),
        ]
        repo.get_assessments_for_worker.return_value = []
        service = WorkerKPIService(repo, clock=FakeClock(NOW))

        report = await service.get_worker_monthly_kpi("w1")

        assert report.metrics.pending_assignments == 0
        assert report.kpi.breakdown.pending_bonus == 0
        assert report.kpi.score == 0
        repo.get_assignments_for_worker.assert_called_once_with(
            "w1", date(2026, 10, 1), date(2026, 10, 31),
        )
