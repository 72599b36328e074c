"""
WorkReady Engine — Centralized configuration.

Loads all settings from .env and validates them.
Every other module reads its tunables from the `settings` singleton.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError, field_validator

# Load .env from project root (one level up from workready/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)

KPI_FORMULAS = ("v2_late_penalty", "v1_late_bonus")


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # SQLite reference store
    DATABASE_PATH: str = "data/workready.db"

    # Organisational timezone, as a fixed offset from UTC (Philippines = +8)
    UTC_OFFSET_HOURS: int = 8

    # Cycle and scoring tunables
    CYCLE_LENGTH_DAYS: int = 7
    SHIFT_HOURS: int = 8
    RECOVERY_WINDOW_DAYS: int = 7
    STREAK_COUNT_WEEKENDS: bool = True
    ALLOW_SAME_DAY_RESUBMISSION: bool = True
    KPI_FORMULA: str = "v2_late_penalty"

    LOG_LEVEL: str = "INFO"

    @field_validator("UTC_OFFSET_HOURS", mode="before")
    @classmethod
    def parse_offset(cls, v: str | int) -> int:
        offset = int(v)
        if not -12 <= offset <= 14:
            raise ValueError(f"UTC offset out of range: {offset}")
        return offset

    @field_validator("CYCLE_LENGTH_DAYS", "SHIFT_HOURS", "RECOVERY_WINDOW_DAYS", mode="before")
    @classmethod
    def parse_positive(cls, v: str | int) -> int:
        value = int(v)
        if value < 1:
            raise ValueError(f"Must be a positive integer, got {value}")
        return value

    @field_validator("STREAK_COUNT_WEEKENDS", "ALLOW_SAME_DAY_RESUBMISSION", mode="before")
    @classmethod
    def parse_flag(cls, v: str | bool) -> bool:
        if isinstance(v, bool):
            return v
        return str(v).strip().lower() in ("1", "true", "yes", "on")

    @field_validator("KPI_FORMULA", mode="before")
    @classmethod
    def parse_formula(cls, v: str) -> str:
        name = str(v).strip().lower()
        if name not in KPI_FORMULAS:
            raise ValueError(f"Unknown KPI formula {v!r}, expected one of {KPI_FORMULAS}")
        return name

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def parse_log_level(cls, v: str) -> str:
        return str(v).strip().upper() or "INFO"


def _load_settings() -> Settings:
    """Load settings from environment, exiting on invalid values."""
    try:
        return Settings(
            DATABASE_PATH=os.getenv("DATABASE_PATH", "data/workready.db"),
            UTC_OFFSET_HOURS=os.getenv("UTC_OFFSET_HOURS", "8"),
            CYCLE_LENGTH_DAYS=os.getenv("CYCLE_LENGTH_DAYS", "7"),
            SHIFT_HOURS=os.getenv("SHIFT_HOURS", "8"),
            RECOVERY_WINDOW_DAYS=os.getenv("RECOVERY_WINDOW_DAYS", "7"),
            STREAK_COUNT_WEEKENDS=os.getenv("STREAK_COUNT_WEEKENDS", "true"),
            ALLOW_SAME_DAY_RESUBMISSION=os.getenv("ALLOW_SAME_DAY_RESUBMISSION", "true"),
            KPI_FORMULA=os.getenv("KPI_FORMULA", "v2_late_penalty"),
            LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
        )
    except ValidationError as exc:
        print(f"ERROR: invalid configuration in .env or environment:\n{exc}", file=sys.stderr)
        sys.exit(1)


# Singleton — imported by all other modules as:
#   from workready.config import settings
settings = _load_settings()
