"""
WorkReady Engine — SQLite work-readiness store.

Reference implementation of the repository port. Workers, assignments,
assessments and login events live in one SQLite file. The unique index on
(worker_id, submitted_day) is what keeps two racing same-day submissions
from producing two assessment rows.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from dataclasses import replace
from datetime import date, datetime, timezone
from pathlib import Path

from workready.core.errors import AlreadySubmittedTodayError, NotFoundError
from workready.core.time_utils import date_key, ensure_aware, parse_timestamp
from workready.data.models import (
    ROLE_TEAM_LEADER,
    ROLE_WORKER,
    STATUS_COMPLETED,
    STATUS_OVERDUE,
    STATUS_PENDING,
    Assessment,
    Assignment,
    LoginEvent,
    WorkerProfile,
)

logger = logging.getLogger(__name__)


def _ts(value: datetime | None) -> str | None:
    """Store instants as UTC ISO strings so they sort lexically."""
    if value is None:
        return None
    return ensure_aware(value).astimezone(timezone.utc).isoformat()


def _day(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


class WorkReadinessDB:
    """SQLite-backed storage implementing WorkReadinessRepository."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from workready.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        """Create tables and indexes if they don't exist."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS workers (
                    id              TEXT PRIMARY KEY,
                    role            TEXT NOT NULL,
                    team            TEXT,
                    team_leader_id  TEXT,
                    managed_teams   TEXT NOT NULL DEFAULT '[]',
                    first_name      TEXT NOT NULL DEFAULT '',
                    last_name       TEXT NOT NULL DEFAULT '',
                    is_active       INTEGER NOT NULL DEFAULT 1
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS assignments (
                    id              TEXT PRIMARY KEY,
                    worker_id       TEXT NOT NULL,
                    team_leader_id  TEXT,
                    assigned_date   TEXT NOT NULL,
                    due_time        TEXT NOT NULL,
                    status          TEXT NOT NULL DEFAULT 'pending',
                    completed_at    TEXT,
                    assessment_id   TEXT
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS assessments (
                    id               TEXT PRIMARY KEY,
                    worker_id        TEXT NOT NULL,
                    team_leader_id   TEXT,
                    team             TEXT,
                    readiness_level  TEXT NOT NULL,
                    fatigue_level    INTEGER NOT NULL,
                    mood             TEXT NOT NULL,
                    pain_discomfort  INTEGER NOT NULL DEFAULT 0,
                    pain_areas       TEXT NOT NULL DEFAULT '[]',
                    notes            TEXT,
                    submitted_at     TEXT NOT NULL,
                    submitted_day    TEXT NOT NULL,
                    cycle_start      TEXT,
                    cycle_day        INTEGER NOT NULL DEFAULT 1,
                    streak_days      INTEGER NOT NULL DEFAULT 0,
                    cycle_completed  INTEGER NOT NULL DEFAULT 0
                )
            """)
            conn.execute("""
                CREATE UNIQUE INDEX IF NOT EXISTS ux_assessments_worker_day
                    ON assessments (worker_id, submitted_day)
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS login_events (
                    id         INTEGER PRIMARY KEY AUTOINCREMENT,
                    worker_id  TEXT NOT NULL,
                    timestamp  TEXT NOT NULL,
                    action     TEXT NOT NULL DEFAULT 'login',
                    success    INTEGER NOT NULL DEFAULT 1
                )
            """)
        logger.debug("Work-readiness tables initialized at %s", self._db_path)

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_worker(row: sqlite3.Row) -> WorkerProfile:
        return WorkerProfile(
            id=row["id"],
            role=row["role"],
            team=row["team"],
            team_leader_id=row["team_leader_id"],
            first_name=row["first_name"],
            last_name=row["last_name"],
        )

    @staticmethod
    def _row_to_assignment(row: sqlite3.Row) -> Assignment:
        return Assignment(
            id=row["id"],
            worker_id=row["worker_id"],
            team_leader_id=row["team_leader_id"],
            assigned_date=date.fromisoformat(row["assigned_date"]),
            due_time=parse_timestamp(row["due_time"]),
            status=row["status"],
            completed_at=parse_timestamp(row["completed_at"]) if row["completed_at"] else None,
            assessment_id=row["assessment_id"],
        )

    @staticmethod
    def _row_to_assessment(row: sqlite3.Row) -> Assessment:
        return Assessment(
            id=row["id"],
            worker_id=row["worker_id"],
            team_leader_id=row["team_leader_id"],
            team=row["team"],
            readiness_level=row["readiness_level"],
            fatigue_level=row["fatigue_level"],
            mood=row["mood"],
            pain_discomfort=bool(row["pain_discomfort"]),
            pain_areas=json.loads(row["pain_areas"]),
            notes=row["notes"],
            submitted_at=parse_timestamp(row["submitted_at"]),
            cycle_start=_day(row["cycle_start"]),
            cycle_day=row["cycle_day"],
            streak_days=row["streak_days"],
            cycle_completed=bool(row["cycle_completed"]),
        )

    @staticmethod
    def _assessment_params(assessment: Assessment) -> tuple:
        return (
            assessment.worker_id,
            assessment.team_leader_id,
            assessment.team,
            assessment.readiness_level,
            assessment.fatigue_level,
            assessment.mood,
            int(assessment.pain_discomfort),
            json.dumps(assessment.pain_areas),
            assessment.notes,
            _ts(assessment.submitted_at),
            date_key(assessment.submitted_at),
            assessment.cycle_start.isoformat() if assessment.cycle_start else None,
            assessment.cycle_day,
            assessment.streak_days,
            int(assessment.cycle_completed),
        )

    # ------------------------------------------------------------------
    # Workers and logins (owned by user management; seeding helpers)
    # ------------------------------------------------------------------

    def add_worker(
        self,
        worker_id: str,
        role: str = ROLE_WORKER,
        team: str | None = None,
        team_leader_id: str | None = None,
        first_name: str = "",
        last_name: str = "",
        managed_teams: list[str] | None = None,
    ) -> WorkerProfile:
        """Insert a user profile."""
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO workers
                    (id, role, team, team_leader_id, managed_teams, first_name, last_name)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    worker_id, role, team, team_leader_id,
                    json.dumps(managed_teams or []), first_name, last_name,
                ),
            )
        logger.info("User added: %s (%s, team=%s)", worker_id, role, team)
        return WorkerProfile(
            id=worker_id, role=role, team=team, team_leader_id=team_leader_id,
            first_name=first_name, last_name=last_name,
        )

    def get_worker_by_id(self, worker_id: str) -> WorkerProfile | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM workers WHERE id = ?", (worker_id,)
            ).fetchone()
        if row is None:
            return None
        return self._row_to_worker(row)

    def find_team_leader_for_team(self, team: str) -> str | None:
        """Active team leader managing `team`, falling back to their own team field."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM workers WHERE role = ? AND is_active = 1 ORDER BY id",
                (ROLE_TEAM_LEADER,),
            ).fetchall()
        for row in rows:
            if team in json.loads(row["managed_teams"]):
                return row["id"]
        for row in rows:
            if row["team"] == team:
                return row["id"]
        return None

    def record_login(self, event: LoginEvent) -> None:
        """Append a login event. Only successful "login" actions count as logins."""
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO login_events (worker_id, timestamp, action, success) VALUES (?, ?, ?, ?)",
                (event.worker_id, _ts(event.timestamp), event.action, int(event.success)),
            )
        logger.debug(
            "%s recorded for %s at %s (success=%s)",
            event.action, event.worker_id, event.timestamp, event.success,
        )

    def get_last_successful_login(self, worker_id: str) -> datetime | None:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT timestamp FROM login_events
                WHERE worker_id = ? AND action = 'login' AND success = 1
                ORDER BY timestamp DESC LIMIT 1
                """,
                (worker_id,),
            ).fetchone()
        if row is None:
            return None
        return parse_timestamp(row["timestamp"])

    # ------------------------------------------------------------------
    # Assessments
    # ------------------------------------------------------------------

    def get_latest_assessment(self, worker_id: str) -> Assessment | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM assessments WHERE worker_id = ? ORDER BY submitted_at DESC LIMIT 1",
                (worker_id,),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_assessment(row)

    def get_assessment_for_date(self, worker_id: str, day: date) -> Assessment | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM assessments WHERE worker_id = ? AND submitted_day = ?",
                (worker_id, day.isoformat()),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_assessment(row)

    def get_assessments_for_worker(
        self, worker_id: str, start: date, end: date,
    ) -> list[Assessment]:
        """Assessments whose calendar day falls in [start, end], oldest first."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT * FROM assessments
                WHERE worker_id = ? AND submitted_day BETWEEN ? AND ?
                ORDER BY submitted_at
                """,
                (worker_id, start.isoformat(), end.isoformat()),
            ).fetchall()
        return [self._row_to_assessment(r) for r in rows]

    def create_assessment(self, assessment: Assessment) -> Assessment:
        """Insert an assessment; a second one for the same worker and day is rejected."""
        assessment_id = assessment.id or uuid.uuid4().hex
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO assessments
                        (id, worker_id, team_leader_id, team, readiness_level,
                         fatigue_level, mood, pain_discomfort, pain_areas, notes,
                         submitted_at, submitted_day, cycle_start, cycle_day,
                         streak_days, cycle_completed)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (assessment_id, *self._assessment_params(assessment)),
                )
        except sqlite3.IntegrityError as exc:
            raise AlreadySubmittedTodayError(
                f"Worker {assessment.worker_id} already submitted on "
                f"{date_key(assessment.submitted_at)}"
            ) from exc
        logger.info(
            "Assessment %s created for %s (day %d, streak %d)",
            assessment_id, assessment.worker_id, assessment.cycle_day, assessment.streak_days,
        )
        return replace(assessment, id=assessment_id)

    def update_assessment(self, assessment_id: str, assessment: Assessment) -> Assessment:
        """Overwrite an existing assessment in place."""
        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE assessments SET
                    worker_id = ?, team_leader_id = ?, team = ?, readiness_level = ?,
                    fatigue_level = ?, mood = ?, pain_discomfort = ?, pain_areas = ?,
                    notes = ?, submitted_at = ?, submitted_day = ?, cycle_start = ?,
                    cycle_day = ?, streak_days = ?, cycle_completed = ?
                WHERE id = ?
                """,
                (*self._assessment_params(assessment), assessment_id),
            )
        if cursor.rowcount == 0:
            raise NotFoundError(f"Assessment {assessment_id} not found")
        logger.info("Assessment %s updated for %s", assessment_id, assessment.worker_id)
        return replace(assessment, id=assessment_id)

    # ------------------------------------------------------------------
    # Assignments
    # ------------------------------------------------------------------

    def add_assignment(
        self,
        worker_id: str,
        assigned_date: date,
        due_time: datetime,
        team_leader_id: str | None = None,
        assignment_id: str | None = None,
    ) -> Assignment:
        """Insert a pending assignment (the team-leader workflow's job)."""
        assignment_id = assignment_id or uuid.uuid4().hex
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO assignments
                    (id, worker_id, team_leader_id, assigned_date, due_time, status)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    assignment_id, worker_id, team_leader_id,
                    assigned_date.isoformat(), _ts(due_time), STATUS_PENDING,
                ),
            )
        logger.info("Assignment %s added for %s on %s", assignment_id, worker_id, assigned_date)
        return Assignment(
            id=assignment_id, worker_id=worker_id, team_leader_id=team_leader_id,
            assigned_date=assigned_date, due_time=ensure_aware(due_time),
        )

    def get_assignment(self, assignment_id: str) -> Assignment | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM assignments WHERE id = ?", (assignment_id,)
            ).fetchone()
        if row is None:
            return None
        return self._row_to_assignment(row)

    def get_assignments_for_worker(
        self, worker_id: str, start: date, end: date,
    ) -> list[Assignment]:
        """Assignments with assigned_date in [start, end], newest first."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT * FROM assignments
                WHERE worker_id = ? AND assigned_date BETWEEN ? AND ?
                ORDER BY assigned_date DESC, due_time DESC
                """,
                (worker_id, start.isoformat(), end.isoformat()),
            ).fetchall()
        return [self._row_to_assignment(r) for r in rows]

    def get_active_assignment_for_date(
        self, worker_id: str, day: date,
    ) -> Assignment | None:
        """Pending or overdue assignment for `day`, earliest due first."""
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT * FROM assignments
                WHERE worker_id = ? AND assigned_date = ? AND status IN (?, ?)
                ORDER BY due_time LIMIT 1
                """,
                (worker_id, day.isoformat(), STATUS_PENDING, STATUS_OVERDUE),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_assignment(row)

    def mark_assignment_completed(
        self, assignment_id: str, assessment_id: str, completed_at: datetime,
    ) -> None:
        """Complete a pending or overdue assignment. Completed ones are left alone."""
        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE assignments
                SET status = ?, assessment_id = ?, completed_at = ?
                WHERE id = ? AND status IN (?, ?)
                """,
                (
                    STATUS_COMPLETED, assessment_id, _ts(completed_at),
                    assignment_id, STATUS_PENDING, STATUS_OVERDUE,
                ),
            )
            if cursor.rowcount == 0:
                exists = conn.execute(
                    "SELECT 1 FROM assignments WHERE id = ?", (assignment_id,)
                ).fetchone()
                if exists is None:
                    raise NotFoundError(f"Assignment {assignment_id} not found")
                logger.warning("Assignment %s already completed, left unchanged", assignment_id)
                return
        logger.info("Assignment %s completed by assessment %s", assignment_id, assessment_id)

    def mark_overdue_assignments(self, now: datetime) -> int:
        """Flip pending assignments whose due time has passed to overdue."""
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE assignments SET status = ? WHERE status = ? AND due_time < ?",
                (STATUS_OVERDUE, STATUS_PENDING, _ts(now)),
            )
        count = cursor.rowcount
        if count:
            logger.info("Marked %d assignment(s) overdue", count)
        return count
