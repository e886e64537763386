"""Configuration module for the CS2 log service."""

from cs2logs.config.settings import (
    APISettings,
    DatabaseSettings,
    LogParserSettings,
    SchedulerSettings,
    Settings,
    get_settings,
)

__all__ = [
    "Settings",
    "get_settings",
    "APISettings",
    "DatabaseSettings",
    "LogParserSettings",
    "SchedulerSettings",
]
