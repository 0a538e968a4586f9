"""Application configuration using Pydantic Settings.

Environment variables are loaded from .env files and system environment.
Only the validator service reads these values; the graph algorithms take
everything they need as arguments.
"""

from functools import lru_cache
from typing import Any

from pydantic import ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from flowgraph.schemas.validation import (
    MAX_EDGES_LIMIT,
    MAX_NODES_LIMIT,
    ValidationLevel,
)

# Inclusive (min, max) per limit, matching ValidationOptions
_LIMIT_BOUNDS = {
    "DAG_MAX_NODES": (1, MAX_NODES_LIMIT),
    "DAG_MAX_EDGES": (0, MAX_EDGES_LIMIT),
}


class Settings(BaseSettings):
    """Application settings.

    All settings can be overridden via environment variables.
    Environment variables take precedence over .env file values.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    PROJECT_NAME: str = "Flowgraph"
    DEBUG: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str | None = None  # No file handler unless set
    LOG_JSON_FORMAT: bool = True  # Use JSON format for file logs

    # DAG validation limits
    DAG_MAX_NODES: int = 500
    DAG_MAX_EDGES: int = 2000
    DAG_ALLOW_DANGLING_EDGES: bool = False
    DAG_DEFAULT_LEVEL: str = "standard"

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> str:
        """Accept log levels in any case."""
        if isinstance(v, str):
            return v.strip().upper()
        return "INFO"

    @field_validator("DAG_DEFAULT_LEVEL", mode="before")
    @classmethod
    def validate_default_level(cls, v: Any) -> str:
        """Restrict the default validation level to the known levels."""
        level = str(v).strip().lower()
        try:
            return ValidationLevel(level).value
        except ValueError:
            allowed = ", ".join(member.value for member in ValidationLevel)
            raise ValueError(f"DAG_DEFAULT_LEVEL must be one of {allowed}") from None

    @field_validator("DAG_MAX_NODES", "DAG_MAX_EDGES")
    @classmethod
    def validate_limits(cls, v: int, info: ValidationInfo) -> int:
        """Keep size limits within the range ValidationOptions accepts."""
        low, high = _LIMIT_BOUNDS[info.field_name]
        if not low <= v <= high:
            raise ValueError(f"{info.field_name} must be between {low} and {high}")
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are cached after first load for performance.
    """
    return Settings()


# Global settings instance
settings = get_settings()
