"""Configuration module for vcstream."""

from .http import HTTPSettings
from .logging import LoggingSettings
from .settings import ConfigurationError, Settings, get_settings


__all__ = [
    "ConfigurationError",
    "HTTPSettings",
    "LoggingSettings",
    "Settings",
    "get_settings",
]
