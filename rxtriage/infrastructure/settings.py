"""Application Settings and Configuration.

This module provides application-wide settings read from environment
variables (prefix ``RX_``) with application defaults. Values are validated by
a Pydantic model, so a bad variable fails at startup instead of mid-batch.
The domain layer never reads settings itself; surfaces (CLI, API) pass the
values in.
"""

import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

# Application metadata
APP_NAME = "Rx-Triage"
APP_VERSION = "1.0.0"

# Default max input size (50MB); the whole file is held in memory
DEFAULT_MAX_INPUT_BYTES = 50 * 1024 * 1024

# Half-width of the score smoothing perturbation
DEFAULT_SCORE_SMOOTHING = 0.04

DEFAULT_MAX_WORKERS = 1

DEFAULT_REPORT_DIR = "reports"


class Settings(BaseModel):
    """Application settings.

    ``Settings()`` holds the defaults; ``Settings.from_environment()`` reads
    the RX_ variables.

    Attributes:
        app_name: Display name (RX_APP_NAME)
        log_level: Logging level name (RX_LOG_LEVEL)
        json_logs: Emit JSON log lines (RX_JSON_LOGS)
        max_input_bytes: Upload/file size limit (RX_MAX_INPUT_BYTES)
        random_seed: Seed for score smoothing; unset means non-reproducible (RX_RANDOM_SEED)
        score_smoothing: Smoothing half-width; 0 disables it (RX_SCORE_SMOOTHING)
        max_workers: Worker threads for batch scoring (RX_MAX_WORKERS)
        report_dir: Directory that relative report paths resolve against (RX_REPORT_DIR)

    Raises:
        pydantic.ValidationError: If a value does not parse or is out of range
            (a ValueError subclass)
    """

    app_name: str = Field(default=APP_NAME, description="Display name")
    app_version: str = Field(default=APP_VERSION, description="Application version")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level name")
    json_logs: bool = Field(default=False, description="Emit JSON log lines")

    # Ingestion
    max_input_bytes: int = Field(default=DEFAULT_MAX_INPUT_BYTES, description="Input size limit in bytes")

    # Scoring
    random_seed: Optional[int] = Field(default=None, description="Seed for score smoothing")
    score_smoothing: float = Field(default=DEFAULT_SCORE_SMOOTHING, description="Smoothing half-width")
    max_workers: int = Field(default=DEFAULT_MAX_WORKERS, description="Worker threads for batch scoring")

    # Reports
    report_dir: str = Field(default=DEFAULT_REPORT_DIR, description="Base directory for relative report paths")

    @field_validator("json_logs", mode="before")
    @classmethod
    def parse_json_logs(cls, v: Any) -> Any:
        """Only the text "true" (any case) switches JSON logs on."""
        if isinstance(v, str):
            return v.strip().lower() == "true"
        return v

    @field_validator("random_seed", mode="before")
    @classmethod
    def blank_seed_is_unset(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("max_input_bytes")
    @classmethod
    def validate_max_input_bytes(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"RX_MAX_INPUT_BYTES must be positive, got {v}")
        return v

    @field_validator("score_smoothing")
    @classmethod
    def validate_score_smoothing(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"RX_SCORE_SMOOTHING must be non-negative, got {v}")
        return v

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"RX_MAX_WORKERS must be at least 1, got {v}")
        return v

    @classmethod
    def from_environment(cls) -> "Settings":
        """Load settings from RX_ environment variables.

        Unset variables keep their defaults.
        """
        env_names = {
            "app_name": "RX_APP_NAME",
            "log_level": "RX_LOG_LEVEL",
            "json_logs": "RX_JSON_LOGS",
            "max_input_bytes": "RX_MAX_INPUT_BYTES",
            "random_seed": "RX_RANDOM_SEED",
            "score_smoothing": "RX_SCORE_SMOOTHING",
            "max_workers": "RX_MAX_WORKERS",
            "report_dir": "RX_REPORT_DIR",
        }
        config_data = {
            field: os.environ[name]
            for field, name in env_names.items()
            if name in os.environ
        }
        return cls(**config_data)

    def resolve_report_path(self, output: str) -> Path:
        """Place a relative report path under report_dir.

        Absolute paths are returned unchanged.
        """
        path = Path(output).expanduser()
        if path.is_absolute():
            return path
        return Path(self.report_dir).expanduser() / path


# Global settings instance
settings = Settings.from_environment()
