"""Configuration package."""

from myexpenses.config.settings import (
    DEFAULT_STORAGE_KEY,
    AppSettings,
    GoogleSheetsSettings,
    Settings,
    StorageSettings,
    SyncSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "DEFAULT_STORAGE_KEY",
    "AppSettings",
    "GoogleSheetsSettings",
    "Settings",
    "StorageSettings",
    "SyncSettings",
    "get_settings",
    "validate_all_settings",
]
