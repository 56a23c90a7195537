"""Configuration management module."""

from .settings import (
    Settings,
    AppConfig,
    BitbucketConfig,
    LoggingConfig,
    get_settings,
    reload_settings,
)

__all__ = [
    "Settings",
    "AppConfig",
    "BitbucketConfig",
    "LoggingConfig",
    "get_settings",
    "reload_settings",
]
