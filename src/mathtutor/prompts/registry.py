"""Prompt Registry - system-prompt templates keyed by prompt mode.

Each chat request is prefixed by exactly one system message whose text is
the template registered for the requested mode. New modes can be added at
runtime without touching call sites.

Usage:
    from mathtutor.prompts.registry import build_system_prompt

    prompt = build_system_prompt("homework", context="【当前知识点】一元二次方程")
"""

from __future__ import annotations

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_MODE = "knowledge"

PROMPT_TEMPLATES: dict[str, str] = {
    "knowledge": """你是一位专业的数学辅导老师，专门帮助学生理解数学知识点。你的职责是：
1. 用通俗易懂的语言解释数学概念
2. 举例说明，帮助学生理解
3. 回答要准确、简洁、有条理
4. 适当使用类比和图示说明（文字描述）

当学生询问当前知识点时，请结合提供的知识点内容进行回答。""",
    "homework": """你是一位专业的数学辅导老师，专门帮助学生解决数学题目。你的职责是：
1. 先引导学生思考，而不是直接给出答案
2. 逐步分析解题思路
3. 讲解关键步骤和考点
4. 最后给出完整解答和总结

请按照"审题分析→思路引导→解答过程→知识点总结"的顺序来帮助学生。""",
    "suggestion": """你是一位专业的数学学习顾问。你的职责是：
1. 根据学生的学习进度和掌握情况
2. 分析学生的薄弱环节
3. 提供个性化的学习建议和推荐
4. 鼓励学生，保持积极的学习态度

请给出具体、可执行的学习建议。""",
}

# Appended after the template when a knowledge context is supplied
CONTEXT_BLOCK = (
    "\n\n========== 当前学习内容 ==========\n"
    "{context}\n"
    "=====================================\n\n"
    "请根据以上知识点内容回答用户的问题。如果用户的问题与当前知识点无关，也可以正常回答。"
)


class UnknownPromptModeError(KeyError):
    """Requested prompt mode has no registered template."""

    def __init__(self, mode: str):
        self.mode = mode
        super().__init__(mode)

    def __str__(self) -> str:
        return f"Unknown prompt mode: {self.mode} (available: {', '.join(list_prompt_modes())})"


def get_prompt_template(mode: str) -> str:
    """Return the template registered for mode.

    Raises:
        UnknownPromptModeError: If mode is not registered
    """
    try:
        return PROMPT_TEMPLATES[mode]
    except KeyError:
        raise UnknownPromptModeError(mode) from None


def register_prompt_mode(mode: str, template: str, replace: bool = False) -> None:
    """Register a new prompt mode.

    Args:
        mode: Mode tag used by callers (e.g. "exam_review")
        template: System-prompt text for that mode
        replace: Allow overwriting an existing mode

    Raises:
        ValueError: If mode exists and replace is False, or template is empty
    """
    if not template:
        raise ValueError(f"Empty template for prompt mode: {mode}")
    if mode in PROMPT_TEMPLATES and not replace:
        raise ValueError(f"Prompt mode already registered: {mode}")

    PROMPT_TEMPLATES[mode] = template
    logger.debug("prompt_mode_registered", mode=mode, replaced=replace)


def list_prompt_modes() -> list[str]:
    """List all registered prompt modes, sorted."""
    return sorted(PROMPT_TEMPLATES)


def build_system_prompt(mode: str = DEFAULT_MODE, context: str | None = None) -> str:
    """Compose the system prompt for a chat request.

    Args:
        mode: Registered prompt mode
        context: Optional knowledge context; ignored when empty

    Returns:
        Template text, followed by the context block when context is given
    """
    prompt = get_prompt_template(mode)
    if context:
        prompt += CONTEXT_BLOCK.format(context=context)
    return prompt
