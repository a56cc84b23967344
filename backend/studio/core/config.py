# backend/studio/core/config.py
import logging
import os
from pathlib import Path
from typing import Any, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug("[CONFIG] Looking for .env at: %s (exists=%s)", env_path, env_path.exists())
    load_dotenv(env_path)


class Settings(BaseSettings):
    # Database
    database_url: str = Field(
        default="sqlite:///./studio.db",
        description="SQLAlchemy URL for the scheduling database",
    )
    db_echo: bool = Field(default=False, description="Echo SQL statements to the log")
    db_pool_size: int = Field(default=5, ge=1)
    db_max_overflow: int = Field(default=5, ge=0)
    db_pool_timeout: int = Field(
        default=5,
        ge=1,
        description="Seconds to wait for a pooled connection before failing",
    )
    db_statement_timeout_ms: int = Field(
        default=15000,
        ge=0,
        description="PostgreSQL statement_timeout applied to every connection",
    )
    db_lock_timeout_ms: int = Field(
        default=5000,
        ge=0,
        description="Upper bound on lock waits inside booking transactions",
    )

    # Scheduling rules
    reference_timezone: str = Field(
        default="UTC",
        description="Fixed timezone naive datetimes are interpreted in",
    )
    max_participant_age: int = Field(
        default=18,
        ge=0,
        description="Oldest age (inclusive, whole years) admitted to events",
    )
    max_series_occurrences: int = Field(
        default=52,
        ge=1,
        description="Upper bound on weekly occurrences created by one call",
    )
    default_lesson_duration_minutes: int = Field(default=60, ge=1)
    enforce_event_capacity: bool = Field(
        default=True,
        description="Reject bookings once an event reaches max_capacity",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Legacy flag kept for tests
    is_testing: bool = False

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("reference_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.reference_timezone)

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


settings = Settings()
