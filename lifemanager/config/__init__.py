"""Configuration package."""

from lifemanager.config.settings import (
    AppSettings,
    ExtractionSettings,
    GeminiSettings,
    SavingsSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "ExtractionSettings",
    "GeminiSettings",
    "SavingsSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
