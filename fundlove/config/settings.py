"""
Configuration Management for FundLove

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Backend credentials, session lifetime and dashboard defaults live in one
place and are validated when first accessed.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets data backend configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
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

    # One worksheet per table
    users_sheet_name: str = Field(
        default="Users",
        description="Name of the sheet holding profiles"
    )
    transactions_sheet_name: str = Field(
        default="Transactions",
        description="Name of the sheet holding the transaction ledger"
    )
    targets_sheet_name: str = Field(
        default="Targets",
        description="Name of the sheet holding savings targets"
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


class SessionSettings(BaseSettings):
    """Local session cache configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SESSION_",
        extra="ignore"
    )

    cache_path: str = Field(
        default=".fundlove_session.json",
        description="File holding the cached login session"
    )
    ttl_hours: int = Field(
        default=24,
        ge=1,
        le=24 * 30,
        description="How long a cached session stays valid"
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

    # Dashboard
    recent_transactions_limit: int = Field(
        default=10,
        ge=1,
        le=100,
        description="How many transactions the dashboard lists"
    )
    default_target_amount: int = Field(
        default=10_000_000,
        gt=0,
        description="Target amount used when no target row exists"
    )
    default_target_months: int = Field(
        default=6,
        gt=0,
        description="Target duration used when no target row exists"
    )
    currency_prefix: str = Field(
        default="Rp",
        description="Prefix shown in front of formatted amounts"
    )
    quick_amounts: str = Field(
        default="50000,100000,250000,500000",
        description="Comma-separated list of one-tap deposit amounts"
    )

    # Validation thresholds
    max_transaction_amount: int = Field(
        default=1_000_000_000_000,
        gt=0,
        description="Largest amount accepted for a single transaction"
    )

    @property
    def quick_amounts_list(self) -> list[int]:
        """Get quick amounts as a list of ints."""
        return [int(a.strip()) for a in self.quick_amounts.split(",") if a.strip()]


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

    # Note: These are loaded lazily to allow partial configuration

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def session(self) -> SessionSettings:
        return SessionSettings()

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

    Returns a dict of {setting_name: is_valid}, plus a
    "<name>_error" entry for every section that failed.
    """
    results = {}
    settings = get_settings()

    for name in ("google_sheets", "session", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
