"""Configuration package."""

from fintrack.config.settings import (
    AppSettings,
    AuthSettings,
    DatabaseSettings,
    Settings,
    StorageBackend,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "AuthSettings",
    "DatabaseSettings",
    "Settings",
    "StorageBackend",
    "get_settings",
    "validate_all_settings",
]
