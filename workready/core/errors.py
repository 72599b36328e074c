"""Exceptions raised by the cycle engine and its services.

The KPI scorer clamps out-of-range numbers instead of raising; only
non-numeric or non-finite input reaches InvalidKPIInputError.
"""

from __future__ import annotations


class WorkReadinessError(Exception):
    """Base class for every error raised by this package."""


class NotFoundError(WorkReadinessError):
    """A worker, assessment or assignment does not exist."""


class NoActiveAssignmentError(WorkReadinessError):
    """Submission attempted without a pending/overdue assignment for today."""


class AlreadySubmittedTodayError(WorkReadinessError):
    """Duplicate same-day submission while resubmission is disabled."""


class AssessmentValidationError(WorkReadinessError):
    """Malformed assessment input.

    Carries the pydantic error list so callers can render field messages.
    """

    def __init__(self, message: str, errors: list[dict] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class InvalidKPIInputError(WorkReadinessError):
    """A KPI input that should be numeric is not."""
