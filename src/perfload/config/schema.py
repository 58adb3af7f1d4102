"""Pydantic models for perfload configuration."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

from perfload._constants import DEFAULT_OUTPUT_DIR

# =============================================================================
# Enums
# =============================================================================


class LogLevel(str, Enum):
    """Supported logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


# =============================================================================
# Store Configuration
# =============================================================================


class DatabaseConfig(BaseModel):
    """Relational store configuration."""

    path: str = Field(
        default=str(Path(DEFAULT_OUTPUT_DIR) / "perf.db"),
        description="SQLite database file (':memory:' for a throwaway store)",
    )
    ddl_script: str | None = None  # None = packaged ddl.sql
    timeout_seconds: float = 30.0

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Ensure the database path is not blank."""
        if not v.strip():
            raise ValueError("database.path must not be empty")
        return v


# =============================================================================
# Jenkins Configuration
# =============================================================================


class JenkinsConfig(BaseModel):
    """Jenkins JSON API and artifact download configuration."""

    url: str = Field(
        default="",
        description="Build JSON API URL (e.g., https://jenkins/job/perf/lastSuccessfulBuild/api/json)",
    )
    download_base_url: str = Field(
        default="",
        description="Prefix joined with each artifact's relativePath",
    )
    username: str = "jenkins-user"
    api_token: str = ""
    timeout_seconds: float = 60.0
    verify_tls: bool = True


# =============================================================================
# Root Configuration
# =============================================================================


class PerfloadConfig(BaseModel):
    """Root configuration for perfload.

    All values shown are defaults unless marked REQUIRED.
    """

    name: str = Field(
        default="",
        description="Name of the performance job being loaded (REQUIRED)",
    )

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    jenkins: JenkinsConfig = Field(default_factory=JenkinsConfig)

    save_dir: str = str(Path(DEFAULT_OUTPUT_DIR) / "downloads")
    log_level: LogLevel = LogLevel.INFO

    @model_validator(mode="after")
    def validate_required_fields(self) -> PerfloadConfig:
        """Validate required fields are present."""
        if not self.name:
            raise ValueError("'name' is required")
        return self

    def get_save_dir(self) -> Path:
        """Directory holding the downloaded spreadsheets."""
        return Path(self.save_dir)
