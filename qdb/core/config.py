"""
Centralized configuration management using Pydantic Settings.

Settings are read from QDB_-prefixed environment variables and an optional
.env file.
"""

from functools import lru_cache
import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Adapter settings loaded from environment variables.

    Example:
        QDB_DATABASE_URL=postgresql+asyncpg://localhost/app
        QDB_ATOMIC_DELETE=true
    """

    # Database Configuration
    database_url: str = Field(
        default="sqlite+aiosqlite:///./qdb.db",
        description="Async SQLAlchemy database URL"
    )
    echo_sql: bool = Field(
        default=False,
        description="Echo emitted SQL through the sqlalchemy.engine logger"
    )

    # Adapter behaviour
    atomic_delete: bool = Field(
        default=False,
        description=(
            "Delete with a single DELETE ... RETURNING statement instead of "
            "a read followed by a destroy"
        )
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Root log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_json: bool = Field(
        default=True,
        description="Emit logs as single-line JSON objects"
    )

    model_config = SettingsConfigDict(
        env_prefix="QDB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """
        Validate database URL format.

        Only async drivers are accepted since every store call is awaited.
        """
        if not v or v.strip() == "":
            raise ValueError("QDB_DATABASE_URL is required and cannot be empty")

        valid_schemes = ["sqlite+aiosqlite", "postgresql+asyncpg", "mysql+aiomysql"]
        if not any(v.startswith(scheme + "://") for scheme in valid_schemes):
            raise ValueError(
                f"QDB_DATABASE_URL must start with one of: {', '.join(valid_schemes)}. "
                f"Got: {v[:20]}..."
            )
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize the level name and reject unknown levels."""
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"QDB_LOG_LEVEL must be a logging level name, got: {v}")
        return level

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()


settings = get_settings()
