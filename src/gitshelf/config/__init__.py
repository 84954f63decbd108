"""Configuration package for gitshelf."""

from .settings import (
    AppSettings,
    LoggingSettings,
    UploadSettings,
    RemoteSettings,
    ServerSettings,
    get_settings,
    reset_settings
)

from .schema import GitConfig, mask_token

from .loader import GitConfigLoader, ConfigurationError

__all__ = [
    "AppSettings",
    "LoggingSettings",
    "UploadSettings",
    "RemoteSettings",
    "ServerSettings",
    "get_settings",
    "reset_settings",

    "GitConfig",
    "mask_token",

    "GitConfigLoader",
    "ConfigurationError"
]
