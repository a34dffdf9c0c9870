"""Configuration package for mathtutor."""

from mathtutor.config.app_config import (
    AppConfig,
    ChatSettings,
    ProgressSettings,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "ChatSettings",
    "ProgressSettings",
    "clear_config_cache",
    "load_app_config",
]
