"""Tests for environment-driven settings."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from rxtriage.infrastructure.settings import (
    APP_NAME,
    DEFAULT_MAX_INPUT_BYTES,
    DEFAULT_SCORE_SMOOTHING,
    Settings,
)

RX_VARIABLES = (
    "RX_APP_NAME",
    "RX_LOG_LEVEL",
    "RX_JSON_LOGS",
    "RX_MAX_INPUT_BYTES",
    "RX_RANDOM_SEED",
    "RX_SCORE_SMOOTHING",
    "RX_MAX_WORKERS",
    "RX_REPORT_DIR",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every RX_ variable so defaults apply."""
    for name in RX_VARIABLES:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:
    """Test settings loading and validation."""

    def test_defaults(self, clean_env):
        """Test defaults with no environment overrides."""
        settings = Settings.from_environment()

        assert settings.app_name == APP_NAME
        assert settings.log_level == "INFO"
        assert settings.json_logs is False
        assert settings.max_input_bytes == DEFAULT_MAX_INPUT_BYTES
        assert settings.random_seed is None
        assert settings.score_smoothing == DEFAULT_SCORE_SMOOTHING
        assert settings.max_workers == 1
        assert settings.report_dir == "reports"

    def test_environment_overrides(self, clean_env):
        """Test reading every variable from the environment."""
        clean_env.setenv("RX_APP_NAME", "Rx-Triage Staging")
        clean_env.setenv("RX_LOG_LEVEL", "DEBUG")
        clean_env.setenv("RX_JSON_LOGS", "TRUE")
        clean_env.setenv("RX_MAX_INPUT_BYTES", "1024")
        clean_env.setenv("RX_RANDOM_SEED", "42")
        clean_env.setenv("RX_SCORE_SMOOTHING", "0")
        clean_env.setenv("RX_MAX_WORKERS", "4")
        clean_env.setenv("RX_REPORT_DIR", "/tmp/reports")

        settings = Settings.from_environment()

        assert settings.app_name == "Rx-Triage Staging"
        assert settings.log_level == "DEBUG"
        assert settings.json_logs is True
        assert settings.max_input_bytes == 1024
        assert settings.random_seed == 42
        assert settings.score_smoothing == 0.0
        assert settings.max_workers == 4
        assert settings.report_dir == "/tmp/reports"

    def test_blank_seed_is_unset(self, clean_env):
        """Test that an empty seed variable means no seed."""
        clean_env.setenv("RX_RANDOM_SEED", "  ")
        assert Settings.from_environment().random_seed is None

    @pytest.mark.parametrize("name,value", [
        ("RX_MAX_INPUT_BYTES", "0"),
        ("RX_MAX_INPUT_BYTES", "lots"),
        ("RX_SCORE_SMOOTHING", "-0.1"),
        ("RX_MAX_WORKERS", "0"),
        ("RX_RANDOM_SEED", "abc"),
    ])
    def test_invalid_values(self, clean_env, name, value):
        """Test that bad numeric values fail fast."""
        clean_env.setenv(name, value)
        with pytest.raises(ValueError):
            Settings.from_environment()

    @pytest.mark.parametrize("field,value", [
        ("max_input_bytes", -1),
        ("score_smoothing", -0.5),
        ("max_workers", 0),
    ])
    def test_direct_construction_is_validated(self, field, value):
        """Test that field validators also guard explicit values."""
        with pytest.raises(ValidationError):
            Settings(**{field: value})

    def test_unset_variables_keep_defaults(self, clean_env):
        """Test that only the variables present override defaults."""
        clean_env.setenv("RX_MAX_WORKERS", "3")
        settings = Settings.from_environment()

        assert settings.max_workers == 3
        assert settings == Settings(max_workers=3)


class TestReportPath:
    """Test resolving report paths against report_dir."""

    def test_relative_path_goes_under_report_dir(self, tmp_path):
        """Test that a bare filename lands in report_dir."""
        settings = Settings(report_dir=str(tmp_path))
        assert settings.resolve_report_path("batch.json") == tmp_path / "batch.json"

    def test_absolute_path_is_unchanged(self, tmp_path):
        """Test that an absolute path is returned as given."""
        target = tmp_path / "out" / "batch.csv"
        assert Settings(report_dir="reports").resolve_report_path(str(target)) == target

    def test_default_report_dir(self):
        """Test the default base directory."""
        assert Settings().resolve_report_path("batch.json") == Path("reports") / "batch.json"
