"""
WorkReady Engine — Entry Point.

Runs the goal-tracking and KPI services against the SQLite store and
prints the result as JSON:

    python main.py add-worker w1 --team Alpha --leader tl1
    python main.py assign w1 --date 2026-10-19 --due 2026-10-19T17:00:00+08:00
    python main.py login w1
    python main.py submit w1 '{"readinessLevel": "fit", "fatigueLevel": 2, "mood": "good"}'
    python main.py progress w1
    python main.py kpi w1 --month 2026-10
    python main.py mark-overdue
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import date

from workready.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

from workready.adapters.log_notifier import LogNotifier
from workready.core.errors import AssessmentValidationError, WorkReadinessError
from workready.core.goal_tracking import GoalTrackingService
from workready.core.time_utils import parse_timestamp, today, utc_now
from workready.core.worker_kpi import WorkerKPIService
from workready.data.db import WorkReadinessDB
from workready.data.models import ROLE_TEAM_LEADER, ROLE_WORKER, LoginEvent

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Work-readiness cycle and KPI engine.")
    parser.add_argument("--db", default=None, help="SQLite path (default: DATABASE_PATH)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("add-worker", help="Register a worker or team leader")
    p.add_argument("user_id")
    p.add_argument("--role", choices=[ROLE_WORKER, ROLE_TEAM_LEADER], default=ROLE_WORKER)
    p.add_argument("--team", default=None)
    p.add_argument("--leader", default=None, help="Direct team leader id")
    p.add_argument("--manages", nargs="*", default=None, help="Teams a leader manages")
    p.add_argument("--first-name", default="")
    p.add_argument("--last-name", default="")

    p = sub.add_parser("assign", help="Create a pending assignment")
    p.add_argument("worker_id")
    p.add_argument("--date", type=date.fromisoformat, default=None, help="YYYY-MM-DD (default: today)")
    p.add_argument("--due", required=True, help="ISO due time, e.g. 2026-10-19T17:00:00+08:00")
    p.add_argument("--leader", default=None)

    p = sub.add_parser("login", help="Report the cycle after a login, then record it")
    p.add_argument("worker_id")

    p = sub.add_parser("submit", help="Submit today's readiness assessment")
    p.add_argument("worker_id")
    p.add_argument("payload", help="Assessment JSON")

    p = sub.add_parser("progress", help="Current cycle breakdown")
    p.add_argument("worker_id")

    p = sub.add_parser("kpi", help="Monthly assignment KPI")
    p.add_argument("worker_id")
    p.add_argument("--month", default=None, help="YYYY-MM (default: this month)")

    sub.add_parser("mark-overdue", help="Flip past-due pending assignments to overdue")
    return parser


async def _run(args: argparse.Namespace, db: WorkReadinessDB) -> dict:
    if args.command == "add-worker":
        profile = db.add_worker(
            args.user_id, role=args.role, team=args.team, team_leader_id=args.leader,
            first_name=args.first_name, last_name=args.last_name,
            managed_teams=args.manages,
        )
        return {"id": profile.id, "role": profile.role, "team": profile.team}

    if args.command == "assign":
        assignment = db.add_assignment(
            args.worker_id,
            assigned_date=args.date or today(),
            due_time=parse_timestamp(args.due),
            team_leader_id=args.leader,
        )
        return {
            "id": assignment.id,
            "assigned_date": assignment.assigned_date.isoformat(),
            "due_time": assignment.due_time.isoformat(),
        }

    if args.command == "login":
        response = await GoalTrackingService(db).handle_login(args.worker_id)
        db.record_login(LoginEvent(args.worker_id, utc_now()))
        return response.to_dict()

    if args.command == "submit":
        service = GoalTrackingService(db, notifier=LogNotifier())
        response = await service.handle_submission(args.worker_id, json.loads(args.payload))
        return response.to_dict()

    if args.command == "progress":
        progress = await GoalTrackingService(db).get_worker_weekly_progress(args.worker_id)
        return progress.to_dict()

    if args.command == "kpi":
        month = date.fromisoformat(f"{args.month}-01") if args.month else None
        report = await WorkerKPIService(db).get_worker_monthly_kpi(args.worker_id, month)
        return report.to_dict()

    if args.command == "mark-overdue":
        return {"marked_overdue": db.mark_overdue_assignments(utc_now())}

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    db = WorkReadinessDB(db_path=args.db)
    try:
        result = asyncio.run(_run(args, db))
    except AssessmentValidationError as exc:
        print(json.dumps({"error": str(exc), "fields": exc.errors}, default=str), file=sys.stderr)
        return 2
    except WorkReadinessError as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        print(json.dumps({"error": str(exc), "type": type(exc).__name__}), file=sys.stderr)
        return 1
    print(json.dumps(result, indent=2, ensure_ascii=False, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
