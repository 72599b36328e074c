"""Repository port — abstract interface for work-readiness records.

Core services depend on this protocol, never on a specific store. A store
must keep assessments unique per (worker, calendar day); the services assume
at most one concurrent writer per worker and day.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Protocol

from workready.data.models import Assessment, Assignment, WorkerProfile


class WorkReadinessRepository(Protocol):
    """Abstract persistence interface used by the goal-tracking and KPI services."""

    def get_worker_by_id(self, worker_id: str) -> WorkerProfile | None: ...

    def find_team_leader_for_team(self, team: str) -> str | None: ...

    def get_latest_assessment(self, worker_id: str) -> Assessment | None: ...

    def get_assessment_for_date(self, worker_id: str, day: date) -> Assessment | None: ...

    def get_assessments_for_worker(
        self, worker_id: str, start: date, end: date
    ) -> list[Assessment]: ...

    def create_assessment(self, assessment: Assessment) -> Assessment: ...

    def update_assessment(self, assessment_id: str, assessment: Assessment) -> Assessment: ...

    def get_assignments_for_worker(
        self, worker_id: str, start: date, end: date
    ) -> list[Assignment]: ...

    def get_active_assignment_for_date(
        self, worker_id: str, day: date
    ) -> Assignment | None: ...

    def mark_assignment_completed(
        self, assignment_id: str, assessment_id: str, completed_at: datetime
    ) -> None: ...

    def get_last_successful_login(self, worker_id: str) -> datetime | None: ...
