import os
from pathlib import Path

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_database_url() -> str:
    """Get database URL, using absolute path for SQLite to avoid path resolution issues.

    SQLite is only meant for local development and tests. Set DATABASE_URL to a
    PostgreSQL connection string for shared deployments.
    """
    db_url = os.getenv("DATABASE_URL", "")
    if db_url:
        logger.info(f"Using DATABASE_URL from environment: {db_url}")
        return db_url

    db_path = Path(__file__).parent.parent.parent / "design_sync.db"
    abs_path = db_path.resolve()
    db_url = f"sqlite:///{abs_path}"
    logger.warning(f"Using SQLite database (LOCAL DEV ONLY): {db_url}. Set DATABASE_URL to use PostgreSQL.")
    return db_url


class Settings(BaseSettings):
    database_url: str = Field(
        default_factory=get_database_url,
        validation_alias="DATABASE_URL",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    undo_window_hours: int = Field(
        default=24,
        validation_alias="DESIGN_SYNC_UNDO_WINDOW_HOURS",
        description="Hours during which a completed sync operation can be undone",
    )
    max_undo_ops: int = Field(
        default=50,
        validation_alias="DESIGN_SYNC_MAX_UNDO_OPS",
        description="Maximum number of live (non-expired, not undone) undo entries",
    )
    drift_severity_threshold: int = Field(
        default=5,
        validation_alias="DESIGN_SYNC_DRIFT_THRESHOLD",
        description="Changed-field count at which drift severity becomes medium (2x for high)",
    )
    undo_retention_days: int = Field(
        default=30,
        validation_alias="DESIGN_SYNC_UNDO_RETENTION_DAYS",
        description="Days to keep undo entries before the prune job deletes them",
    )
    coverage_retention_days: int = Field(
        default=7,
        validation_alias="DESIGN_SYNC_COVERAGE_RETENTION_DAYS",
        description="Days to keep cached coverage reports",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(valid_levels)}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("undo_window_hours", "max_undo_ops", "drift_severity_threshold")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Reject zero or negative windows, caps and thresholds."""
        if value < 1:
            raise ValueError(f"must be >= 1, got {value}")
        return value

    @field_validator("undo_retention_days", "coverage_retention_days")
    @classmethod
    def validate_retention(cls, value: int) -> int:
        """Retention windows may be zero (prune everything) but never negative."""
        if value < 0:
            raise ValueError(f"must be >= 0, got {value}")
        return value


settings = Settings()
