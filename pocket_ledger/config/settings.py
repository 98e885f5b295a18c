"""
Configuration Management for Pocket Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The analytics engine never reads settings itself; callers pass the
relevant values in (tolerance, currencies) so every view stays a pure
function of its arguments.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AnalyticsSettings(BaseSettings):
    """Analytics engine policy values."""

    model_config = SettingsConfigDict(
        env_prefix="ANALYTICS_",
        extra="ignore"
    )

    reconciliation_tolerance: Decimal = Field(
        default=Decimal("0.1"),
        ge=0,
        description="Item-sum discrepancy ignored by the itemized drill-down"
    )
    unclassified_label: str = Field(
        default="Unclassified",
        min_length=1,
        description="Display name of the drill-down remainder bucket"
    )
    scale_over_itemized: bool = Field(
        default=False,
        description="Scale item prices down when a receipt's items exceed its total"
    )
    home_currency: str = Field(
        default="AUD",
        description="Currency of amount_primary"
    )
    secondary_currency: str = Field(
        default="TWD",
        description="Currency of amount_secondary"
    )
    insight_recent_transactions: int = Field(
        default=30,
        ge=1,
        le=200,
        description="How many recent transactions the insight prompt includes"
    )


class ExchangeRateSettings(BaseSettings):
    """Live exchange rate lookup configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EXCHANGE_RATE_",
        extra="ignore"
    )

    api_url: str = Field(
        default="https://open.er-api.com/v6/latest/AUD",
        description="Public endpoint returning {'rates': {...}} for the home currency"
    )
    default_rate: Decimal = Field(
        default=Decimal("21.5"),
        gt=0,
        description="Rate used until a live rate has been fetched"
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="HTTP timeout for the rate lookup"
    )
    decimal_places: int = Field(
        default=2,
        ge=0,
        le=8,
        description="Fetched rates are rounded to this many places"
    )


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=2048,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )


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

    # Sheet names within the spreadsheet
    transactions_sheet_name: str = Field(
        default="Transactions",
        description="Name of the sheet for transactions"
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


class StorageSettings(BaseSettings):
    """Local storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        extra="ignore"
    )

    backend: str = Field(
        default="json",
        pattern="^(json|sheets|memory)$",
        description="Where the transaction log lives"
    )
    data_dir: Path = Field(
        default=Path("data"),
        description="Directory for local JSON files"
    )
    transactions_file: str = Field(default="transactions.json")
    preferences_file: str = Field(default="preferences.json")

    @property
    def transactions_path(self) -> Path:
        return self.data_dir / self.transactions_file

    @property
    def preferences_path(self) -> Path:
        return self.data_dir / self.preferences_file


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
        description="Root log level for structlog output"
    )

    # Document upload limits
    max_upload_size_mb: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Maximum upload file size in MB"
    )
    supported_document_formats: str = Field(
        default="jpg,jpeg,png,webp,pdf",
        description="Comma-separated list of supported document formats"
    )

    # Validation thresholds
    future_date_tolerance_days: int = Field(
        default=7,
        ge=0,
        description="How many days in the future a transaction date can be"
    )

    @property
    def supported_formats_list(self) -> list[str]:
        """Get supported formats as a list."""
        return [fmt.strip().lower() for fmt in self.supported_document_formats.split(",")]

    @property
    def max_upload_size_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_upload_size_mb * 1024 * 1024


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
    def analytics(self) -> AnalyticsSettings:
        return AnalyticsSettings()

    @property
    def exchange_rate(self) -> ExchangeRateSettings:
        return ExchangeRateSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

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

    Returns a dict of {setting_name: is_valid}, plus an
    "<name>_error" entry for each group that failed to load.
    Useful for startup checks.
    """
    results: dict = {}

    settings = get_settings()

    for name in ("analytics", "exchange_rate", "gemini", "google_sheets", "storage", "app"):
        try:
            _ = getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results


def optional_gemini_settings() -> Optional[GeminiSettings]:
    """Gemini settings, or None when no API key is configured."""
    try:
        return get_settings().gemini
    except Exception:
        return None
