"""Application configuration loader.

Loads centralized configuration from data/config/app_config_v1.yaml,
falling back to built-in defaults when the file is missing.

Usage:
    from mathtutor.config.app_config import load_app_config

    config = load_app_config()
    api_key = config.chat.get_api_key()
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config_v1.yaml")


@dataclass
class ChatSettings:
    """Settings for the remote chat-completion service."""

    base_url: str = "https://open.bigmodel.cn/api/paas/v4"
    model: str = "glm-4-flash"
    api_key_env: str | None = "ZHIPU_API_KEY"
    temperature: float = 0.7
    max_tokens: int = 1024
    prompt_modes: dict[str, str] = field(default_factory=dict)

    def get_api_key(self) -> str | None:
        """Get API key from environment variable."""
        if self.api_key_env:
            return os.environ.get(self.api_key_env)
        return None


@dataclass
class ProgressSettings:
    """Settings for lesson-completion tracking."""

    storage_key: str = "math-progress"
    total_nodes: int = 86


@dataclass
class AppConfig:
    """Application-wide configuration."""

    chat: ChatSettings = field(default_factory=ChatSettings)
    progress: ProgressSettings = field(default_factory=ProgressSettings)
    paths: dict[str, str] = field(default_factory=dict)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "chat": {
            "base_url": "https://open.bigmodel.cn/api/paas/v4",
            "model": "glm-4-flash",
            "api_key_env": "ZHIPU_API_KEY",
            "temperature": 0.7,
            "max_tokens": 1024,
        },
        "progress": {
            "storage_key": "math-progress",
            "total_nodes": 86,
        },
        "paths": {
            "state_db": "state/progress.db",
            "knowledge_file": "knowledge/nodes_v1.yaml",
        },
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = _get_defaults()

    chat_data = data.get("chat") or {}
    chat = ChatSettings(
        base_url=chat_data.get("base_url", defaults["chat"]["base_url"]),
        model=chat_data.get("model", defaults["chat"]["model"]),
        api_key_env=chat_data.get("api_key_env", defaults["chat"]["api_key_env"]),
        temperature=chat_data.get("temperature", 0.7),
        max_tokens=chat_data.get("max_tokens", 1024),
        prompt_modes=dict(chat_data.get("prompt_modes") or {}),
    )

    progress_data = data.get("progress") or {}
    progress = ProgressSettings(
        storage_key=progress_data.get("storage_key", "math-progress"),
        total_nodes=progress_data.get("total_nodes", 86),
    )

    paths = {**defaults["paths"], **(data.get("paths") or {})}

    return AppConfig(chat=chat, progress=progress, paths=paths)


def load_app_config(
    config_path: Path | None = None,
    force_reload: bool = False,
) -> AppConfig:
    """Load application config, using defaults when no file exists.

    Args:
        config_path: Path to YAML config. Defaults to CONFIG_FILE.
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    if config_path is None:
        config_path = CONFIG_FILE

    data: dict[str, Any]

    if config_path.exists():
        logger.debug("loading_app_config", source=str(config_path))
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config", missing=str(config_path))
        data = _get_defaults()

    _cached_config = _parse_config(data)
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
