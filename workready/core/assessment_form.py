"""
WorkReady Engine — Assessment input contract.

Validates the readiness self-report a worker submits. The HTTP layer sends
either camelCase or snake_case keys; both are accepted.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from workready.core.errors import AssessmentValidationError

ReadinessLevel = Literal["fit", "minor", "not_fit"]
Mood = Literal["excellent", "good", "okay", "poor", "terrible"]
BodyArea = Literal[
    "Head", "Neck", "Shoulders", "Arms", "Back",
    "Chest", "Abdomen", "Hips", "Legs", "Feet",
]


class AssessmentInput(BaseModel):
    """Worker's readiness self-report.

    JSON example:
    {
        "readinessLevel": "fit",
        "fatigueLevel": 2,
        "mood": "good",
        "painDiscomfort": "no",
        "notes": ""
    }
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    readiness_level: ReadinessLevel = Field(alias="readinessLevel")
    fatigue_level: int = Field(alias="fatigueLevel", ge=1, le=5)
    mood: Mood
    pain_discomfort: bool = Field(default=False, alias="painDiscomfort")
    pain_areas: list[BodyArea] = Field(default_factory=list, alias="painAreas")
    notes: str | None = Field(default=None, max_length=500)

    @field_validator("pain_discomfort", mode="before")
    @classmethod
    def parse_yes_no(cls, v: str | bool | None) -> bool | str:
        if v is None:
            return False
        if isinstance(v, str) and v.strip().lower() in ("yes", "no"):
            return v.strip().lower() == "yes"
        return v

    @field_validator("notes", mode="before")
    @classmethod
    def blank_notes_to_none(cls, v: str | None) -> str | None:
        if isinstance(v, str) and not v.strip():
            return None
        return v


def parse_assessment_input(data: dict) -> AssessmentInput:
    """Validate raw submission data.

    Raises AssessmentValidationError listing every offending field.
    """
    try:
        return AssessmentInput.model_validate(data)
    except ValidationError as exc:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in exc.errors()})
        raise AssessmentValidationError(
            f"Invalid assessment input: {', '.join(fields)}", errors=exc.errors(),
        ) from exc
