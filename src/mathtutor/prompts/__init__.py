"""System-prompt templates for chat modes."""

from mathtutor.prompts.registry import (
    DEFAULT_MODE,
    PROMPT_TEMPLATES,
    UnknownPromptModeError,
    build_system_prompt,
    get_prompt_template,
    list_prompt_modes,
    register_prompt_mode,
)

__all__ = [
    "DEFAULT_MODE",
    "PROMPT_TEMPLATES",
    "UnknownPromptModeError",
    "build_system_prompt",
    "get_prompt_template",
    "list_prompt_modes",
    "register_prompt_mode",
]
