"""
Configuration Management for Savings Vault

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The ledger constants (withdrawal delay, minimum goal target, administrator)
are configuration values, not hard-coded numbers, so operators can tune
them per deployment and tests can shrink them.
"""

from datetime import timedelta
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


SECONDS_PER_DAY = 24 * 60 * 60


class LedgerSettings(BaseSettings):
    """Core ledger rules."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    withdrawal_delay_seconds: int = Field(
        default=7 * SECONDS_PER_DAY,
        ge=0,
        description="Cooling-off period between requesting and executing a withdrawal"
    )
    min_goal_target: int = Field(
        default=1,
        ge=1,
        description="Smallest savings goal target an account may declare"
    )
    administrator_id: str = Field(
        default="admin",
        min_length=1,
        description="Account allowed to toggle the emergency stop"
    )
    emergency_stop_on_start: bool = Field(
        default=False,
        description="Start the ledger with the emergency stop engaged"
    )

    @field_validator('administrator_id')
    @classmethod
    def strip_administrator_id(cls, v: str) -> str:
        """Administrator id must not be blank."""
        v = v.strip()
        if not v:
            raise ValueError("administrator_id cannot be blank")
        return v

    @property
    def withdrawal_delay(self) -> timedelta:
        return timedelta(seconds=self.withdrawal_delay_seconds)


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets audit storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )
    audit_sheet_name: str = Field(
        default="LedgerAudit",
        description="Name of the sheet for ledger audit events"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


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
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum level for local structured logs"
    )

    # UI
    currency_label: str = Field(
        default="units",
        max_length=20,
        description="Label shown next to amounts in the UI"
    )


class Settings(BaseSettings):
    """
    Root settings object.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily to allow partial configuration
    # (Sheets credentials are optional for local runs).

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus
    {setting_name}_error entries for the failing ones.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("ledger", "google_sheets", "app"):
        try:
            _ = getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
