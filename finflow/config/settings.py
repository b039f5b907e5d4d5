"""
Configuration Management for FinFlow

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The storage backend is chosen by configuration at startup and handed to
the service layer explicitly; nothing switches providers at runtime.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Storage backend selection."""
    
    model_config = SettingsConfigDict(
        env_prefix="FINFLOW_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )
    
    backend: Literal["local", "google_sheets"] = Field(
        default="local",
        description="Which storage backend to use"
    )
    local_path: Optional[str] = Field(
        default="finflow_data.json",
        description="JSON file for local persistence (empty = memory only)"
    )
    
    @field_validator('local_path')
    @classmethod
    def empty_path_means_memory(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty string as 'no file'."""
        if v is not None and not v.strip():
            return None
        return v


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""
    
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
    
    # Sheet names within the spreadsheet
    transactions_sheet_name: str = Field(
        default="Transactions",
        description="Name of the sheet for transactions"
    )
    fixed_expenses_sheet_name: str = Field(
        default="FixedExpenses",
        description="Name of the sheet for fixed expense definitions"
    )
    budgets_sheet_name: str = Field(
        default="Budgets",
        description="Name of the sheet for budgets"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
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
    
    # Money
    currency_quantum: Decimal = Field(
        default=Decimal("0.01"),
        gt=0,
        description="Smallest currency unit installments are rounded to"
    )
    
    # Budgets
    budget_warning_ratio: Decimal = Field(
        default=Decimal("0.8"),
        gt=0,
        le=1,
        description="Share of a budget limit above which spending is flagged"
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
    
    # Note: These are loaded lazily to allow partial configuration
    
    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()
    
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
    
    Returns a dict of {setting_name: is_valid}.
    Google Sheets is only checked when it is the selected backend.
    """
    results = {}
    
    settings = get_settings()
    
    try:
        storage = settings.storage
        results["storage"] = True
    except Exception as e:
        storage = None
        results["storage"] = False
        results["storage_error"] = str(e)
    
    if storage is not None and storage.backend == "google_sheets":
        try:
            _ = settings.google_sheets
            results["google_sheets"] = True
        except Exception as e:
            results["google_sheets"] = False
            results["google_sheets_error"] = str(e)
    
    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)
    
    return results
