"""
Configuration Management for Ledgerbook

Uses pydantic-settings for type-safe configuration from environment variables.

All configuration is centralized here so every external dependency
(storage backend, identity source, display currency) is visible in one place
and validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

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

    # One worksheet per backend table
    income_sheet_name: str = Field(default="in")
    expense_sheet_name: str = Field(default="out")
    to_give_sheet_name: str = Field(default="to_give")
    debt_sheet_name: str = Field(default="debt")
    stock_sheet_name: str = Field(default="stock")
    user_roles_sheet_name: str = Field(default="user_roles")
    profiles_sheet_name: str = Field(default="profiles")
    accounts_sheet_name: str = Field(default="accounts")

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

    def sheet_name_for(self, table: str) -> str:
        """Map a backend table name to its configured worksheet title."""
        names = {
            "in": self.income_sheet_name,
            "out": self.expense_sheet_name,
            "to_give": self.to_give_sheet_name,
            "debt": self.debt_sheet_name,
            "stock": self.stock_sheet_name,
            "user_roles": self.user_roles_sheet_name,
            "profiles": self.profiles_sheet_name,
            "accounts": self.accounts_sheet_name,
        }
        try:
            return names[table]
        except KeyError:
            raise ValueError(f"Unknown table: {table}")


class IdentitySettings(BaseSettings):
    """
    Pre-signed-in operator for single-user deployments.

    When set, the Sheets backend treats this user as signed in until
    someone signs in or out through the login page. Leave unset to start
    anonymous.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_USER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    id: Optional[str] = Field(
        default=None,
        description="UUID of the signed-in user"
    )
    email: Optional[str] = Field(
        default=None,
        description="Email of the signed-in user"
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
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum level for local structured logs"
    )

    # Display
    currency: str = Field(
        default="PKR",
        min_length=1,
        max_length=8,
        description="Currency code shown next to amounts"
    )
    cash_mode: str = Field(
        default="net",
        pattern="^(net|income_only)$",
        description="How dashboard cash is derived: income minus expense, or income alone"
    )

    # Accounts
    admin_email: Optional[str] = Field(
        default=None,
        description="Account with this email is made admin when it signs up"
    )

    # Backend
    storage_backend: str = Field(
        default="memory",
        pattern="^(memory|google_sheets)$",
        description="Which persistence backend to use"
    )

    # Validation thresholds
    max_record_amount: float = Field(
        default=10000000.0,
        gt=0,
        description="Amounts above this are flagged for review (sanity check)"
    )
    future_date_tolerance_days: int = Field(
        default=7,
        ge=0,
        description="How many days in the future a record date can be"
    )


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

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def identity(self) -> IdentitySettings:
        return IdentitySettings()

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

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    try:
        _ = settings.identity
        results["identity"] = True
    except Exception as e:
        results["identity"] = False
        results["identity_error"] = str(e)

    try:
        _ = settings.google_sheets
        results["google_sheets"] = True
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    return results
