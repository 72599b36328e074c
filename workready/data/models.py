"""
WorkReady Engine — Data Models.

Records the engine reads and writes through the repository port.
Workers and login events are owned by user management; assignments are
created by the team-leader workflow; assessments are written here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

ROLE_WORKER = "worker"
ROLE_TEAM_LEADER = "team_leader"

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"
STATUS_OVERDUE = "overdue"


@dataclass
class WorkerProfile:
    """Identity of a user as seen by the cycle engine."""

    id: str
    role: str                          # cycle logic applies only to "worker"
    team: str | None = None
    team_leader_id: str | None = None  # direct assignment, wins over team lookup
    first_name: str = ""
    last_name: str = ""

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.id


@dataclass
class Assignment:
    """A single day's obligation to submit a readiness assessment.

    Status only ever moves pending → completed or pending → overdue
    (an overdue assignment can still be completed late).
    """

    id: str
    worker_id: str
    team_leader_id: str | None
    assigned_date: date
    due_time: datetime
    status: str = STATUS_PENDING       # pending | completed | overdue
    completed_at: datetime | None = None
    assessment_id: str | None = None

    @property
    def is_late(self) -> bool:
        """Completed strictly after its due time."""
        return (
            self.status == STATUS_COMPLETED
            and self.completed_at is not None
            and self.completed_at > self.due_time
        )

    @property
    def is_on_time(self) -> bool:
        return (
            self.status == STATUS_COMPLETED
            and self.completed_at is not None
            and self.completed_at <= self.due_time
        )


@dataclass
class Assessment:
    """One worker's readiness self-report for a calendar day.

    The cycle_* / streak_days columns are written at submission time and are
    the only place cycle state lives.
    """

    id: str | None
    worker_id: str
    team_leader_id: str | None
    team: str | None
    readiness_level: str               # fit | minor | not_fit
    fatigue_level: int                 # 1–5
    mood: str
    submitted_at: datetime
    pain_discomfort: bool = False
    pain_areas: list[str] = field(default_factory=list)
    notes: str | None = None
    cycle_start: date | None = None
    cycle_day: int = 1
    streak_days: int = 0
    cycle_completed: bool = False


@dataclass
class LoginEvent:
    """Append-only authentication fact."""

    worker_id: str
    timestamp: datetime
    action: str = "login"
    success: bool = True
