"""Configuration package."""

from expense_tracker.config.settings import (
    AppSettings,
    GoogleSheetsSettings,
    IdentityBackend,
    Settings,
    StorageBackend,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GoogleSheetsSettings",
    "IdentityBackend",
    "Settings",
    "StorageBackend",
    "get_settings",
    "validate_all_settings",
]
