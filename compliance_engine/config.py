"""Configuration management for the stack compliance engine.

This module handles loading and validating configuration from environment
variables with sensible defaults.
"""

import json
from typing import Annotated, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .models.enums import Severity, normalize_baseline


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for local use. In CI pipelines
    these are usually set via environment variables or a .env file.
    """

    # General
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
        validation_alias="LOG_LEVEL",
    )
    environment: str = Field(
        default="development",
        description="Environment name (development, ci, production)",
        validation_alias=AliasChoices("ENVIRONMENT", "ENV"),
    )

    # Rule catalog
    rule_table_path: Optional[str] = Field(
        default=None,
        description="Path to a JSON/YAML rule table (built-in table if not set)",
        validation_alias=AliasChoices("RULE_TABLE_PATH", "RULES_PATH"),
    )
    active_baselines: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["CIS", "FSBP", "NIST"],
        description="Baselines evaluated when a call does not name any",
        validation_alias="ACTIVE_BASELINES",
    )

    # Evaluation
    max_workers: int = Field(
        default=1,
        description="Worker threads used by the evaluation engine (1 = sequential)",
        validation_alias=AliasChoices("EVALUATION_MAX_WORKERS", "MAX_WORKERS"),
        ge=1,
        le=64,
    )
    fail_on_predicate_error: bool = Field(
        default=False,
        description="Abort evaluation when a rule predicate raises",
        validation_alias="FAIL_ON_PREDICATE_ERROR",
    )

    # Reporting
    failure_threshold: Severity = Field(
        default=Severity.MEDIUM,
        description="Minimum severity of a failure that fails a baseline",
        validation_alias="FAILURE_THRESHOLD",
    )
    report_cache_size: int = Field(
        default=32,
        description="Number of compliance reports kept in memory (0 disables caching)",
        validation_alias="REPORT_CACHE_SIZE",
        ge=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator("active_baselines", mode="before")
    @classmethod
    def split_baselines(cls, v):
        """Accept a comma-separated string or a JSON-style list."""
        if isinstance(v, str):
            stripped = v.strip()
            if stripped.startswith("["):
                try:
                    items = json.loads(stripped)
                except json.JSONDecodeError as e:
                    raise ValueError(f"active_baselines is not a valid JSON list: {e}") from e
                if not isinstance(items, list) or not all(isinstance(i, str) for i in items):
                    raise ValueError("active_baselines JSON value must be a list of strings")
                return items
            v = [item for item in (part.strip() for part in stripped.split(",")) if item]
        return v

    @field_validator("active_baselines")
    @classmethod
    def normalize_baselines(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("at least one active baseline is required")
        return [normalize_baseline(b) for b in v]

    @field_validator("failure_threshold", mode="before")
    @classmethod
    def upper_threshold(cls, v):
        return v.upper() if isinstance(v, str) else v


def get_settings() -> Settings:
    """
    Get application settings.

    Loads settings from environment variables and .env file.

    Returns:
        Settings instance with all configuration values
    """
    return Settings()


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def settings() -> Settings:
    """
    Get the global settings instance.

    Creates the settings instance on first call and caches it.

    Returns:
        Global Settings instance
    """
    global _settings
    if _settings is None:
        _settings = get_settings()
    return _settings
