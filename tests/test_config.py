"""Tests for workready.config — Settings validation and loading."""

import pytest
from pydantic import ValidationError

from workready.config import Settings, _load_settings, settings


class TestSettings:
    def test_defaults_loaded_from_environment(self):
        assert settings.UTC_OFFSET_HOURS == 8
        assert settings.CYCLE_LENGTH_DAYS == 7
        assert settings.KPI_FORMULA == "v2_late_penalty"
        assert settings.ALLOW_SAME_DAY_RESUBMISSION is True

    def test_flags_parsed_from_strings(self):
        s = Settings(STREAK_COUNT_WEEKENDS="no", ALLOW_SAME_DAY_RESUBMISSION="1")
        assert s.STREAK_COUNT_WEEKENDS is False
        assert s.ALLOW_SAME_DAY_RESUBMISSION is True

    def test_formula_normalised(self):
        assert Settings(KPI_FORMULA=" V1_LATE_BONUS ").KPI_FORMULA == "v1_late_bonus"

    def test_unknown_formula_rejected(self):
        with pytest.raises(ValidationError):
            Settings(KPI_FORMULA="v3")

    def test_offset_out_of_range(self):
        with pytest.raises(ValidationError):
            Settings(UTC_OFFSET_HOURS="15")

    def test_non_positive_cycle_length(self):
        with pytest.raises(ValidationError):
            Settings(CYCLE_LENGTH_DAYS=0)

    def test_log_level_upper_cased(self):
        assert Settings(LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"


class TestLoadSettings:
    def test_invalid_environment_exits(self, monkeypatch):
        monkeypatch.setenv("UTC_OFFSET_HOURS", "not-a-number")
        with pytest.raises(SystemExit) as exc_info:
            _load_settings()
        assert exc_info.value.code == 1

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("SHIFT_HOURS", "12")
        assert _load_settings().SHIFT_HOURS == 12
