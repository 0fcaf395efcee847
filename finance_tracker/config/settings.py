"""
Configuration Management for Finance Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Storage location, the LLM used for category suggestions and the
dashboard/export windows are all visible in one place and validated
at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Record store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_STORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: Literal["json", "sqlite"] = Field(
        default="sqlite",
        description="Storage backend: a single JSON document or an embedded SQLite log"
    )
    json_path: Path = Field(
        default=Path("data") / "db.json",
        description="Location of the JSON document (json backend)"
    )
    sqlite_path: Path = Field(
        default=Path("data") / "finance.db",
        description="Location of the SQLite database file (sqlite backend)"
    )
    database_url: Optional[str] = Field(
        default=None,
        description="Explicit SQLAlchemy URL; overrides sqlite_path when set"
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: Optional[str]) -> Optional[str]:
        """Only SQLite URLs are supported by the embedded backend."""
        if v and not v.startswith("sqlite"):
            raise ValueError(f"Unsupported database URL: {v}. Only sqlite URLs are supported")
        return v


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration (category suggestions)."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=512,
        ge=64,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.2,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )
    max_suggestions: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Maximum number of categories returned to the user"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Stdlib logging level for structlog output"
    )
    log_json: bool = Field(
        default=True,
        description="Render logs as JSON (False = human readable console output)"
    )

    # Display
    currency: Literal["INR", "USD"] = Field(
        default="INR",
        description="Currency symbol shown next to amounts (no conversion)"
    )

    # Dashboard and export windows
    chart_window_days: int = Field(
        default=30,
        ge=1,
        le=366,
        description="Number of days shown in the revenue/expense chart"
    )
    export_window_days: int = Field(
        default=365,
        ge=1,
        description="Trailing window (days) for the yearly CSV export"
    )

    # Validation thresholds
    future_date_tolerance_days: int = Field(
        default=7,
        ge=0,
        description="How many days in the future a record date can be without a warning"
    )
    max_transaction_amount: float = Field(
        default=10_000_000.0,
        gt=0,
        description="Amounts above this are flagged for review (sanity check)"
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily so a missing Gemini key does not
    # prevent the store and dashboard from working.

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with a
    "<name>_error" entry for each section that failed.
    """
    results = {}

    settings = get_settings()

    for name in ("storage", "gemini", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
