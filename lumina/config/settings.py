"""
Configuration Management for Lumina Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Stores and engines never read settings themselves; only the storage
adapters and the app factory do, so tests can build isolated instances
without any environment.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


CURRENCY_SYMBOLS = {
    "USD": "$",
    "BDT": "৳",
}


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
        description="ID of the spreadsheet that holds the ledger"
    )

    # Tab names within the spreadsheet
    expenses_sheet_name: str = Field(
        default="Spending",
        description="Name of the tab for expenses"
    )
    categories_sheet_name: str = Field(
        default="Categories",
        description="Name of the tab for categories"
    )
    banks_sheet_name: str = Field(
        default="Banks",
        description="Name of the tab for bank accounts"
    )
    bank_transactions_sheet_name: str = Field(
        default="BankTransactions",
        description="Name of the tab for bank transactions"
    )
    loan_transactions_sheet_name: str = Field(
        default="LoanTransactions",
        description="Name of the tab for loan transactions"
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


class LocalStorageSettings(BaseSettings):
    """Local fallback storage, used while no Google session is active."""

    model_config = SettingsConfigDict(
        env_prefix="LUMINA_LOCAL_",
        extra="ignore"
    )

    path: str = Field(
        default="~/.lumina/storage.json",
        description="JSON file holding the local key-value store"
    )
    expenses_key: str = Field(
        default="lumina_expenses",
        description="Key under which the whole expense collection is stored"
    )
    currency_key: str = Field(
        default="currency",
        description="Key under which the chosen display currency is stored"
    )

    @property
    def resolved_path(self) -> Path:
        return Path(self.path).expanduser()


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

    log_level: str = Field(
        default="INFO",
        description="Minimum level for structured logs"
    )

    # Import behaviour
    default_import_category: str = Field(
        default="Uncategorized",
        min_length=1,
        description="Category given to imported rows with a blank purpose"
    )
    import_day_first: bool = Field(
        default=True,
        description="Read ambiguous imported dates like 01/02/2024 as day/month"
    )

    # Display
    currency: str = Field(
        default="USD",
        description="Initial display currency (USD or BDT); the user's saved choice wins"
    )

    @field_validator('currency')
    @classmethod
    def validate_currency(cls, v: str) -> str:
        """Only currencies we know how to display are accepted."""
        code = v.strip().upper()
        if code not in CURRENCY_SYMBOLS:
            raise ValueError(
                f"Unsupported currency: {v}. Allowed: {sorted(CURRENCY_SYMBOLS)}"
            )
        return code


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
    def local_storage(self) -> LocalStorageSettings:
        return LocalStorageSettings()

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
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.google_sheets
        results["google_sheets"] = True
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    try:
        _ = settings.local_storage
        results["local_storage"] = True
    except Exception as e:
        results["local_storage"] = False
        results["local_storage_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
