"""Configuration package."""

from pocket_ledger.config.settings import (
    AnalyticsSettings,
    AppSettings,
    ExchangeRateSettings,
    GeminiSettings,
    GoogleSheetsSettings,
    Settings,
    StorageSettings,
    get_settings,
    optional_gemini_settings,
    validate_all_settings,
)

__all__ = [
    "AnalyticsSettings",
    "AppSettings",
    "ExchangeRateSettings",
    "GeminiSettings",
    "GoogleSheetsSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "optional_gemini_settings",
    "validate_all_settings",
]
