"""Knowledge context formatting for chat prompts."""

from __future__ import annotations

from collections.abc import Iterable

from mathtutor.knowledge.nodes import CATEGORY_LABELS, LEVEL_LABELS, KnowledgeNode

NAME_SEPARATOR = "、"


def _resolve_names(ids: list[str], index: dict[str, KnowledgeNode]) -> list[str]:
    return [index[node_id].name for node_id in ids if node_id in index]


def build_context(
    node: KnowledgeNode | None,
    all_nodes: Iterable[KnowledgeNode],
) -> str:
    """Render a knowledge node as a context block for the system prompt.

    Args:
        node: Node being studied, or None
        all_nodes: Every known node, used to resolve prerequisite and
            next-topic ids to names; unknown ids are dropped

    Returns:
        Human-readable summary, or "" when node is None
    """
    if node is None:
        return ""

    index: dict[str, KnowledgeNode] = {}
    for candidate in all_nodes:
        index.setdefault(candidate.id, candidate)

    context = f"【当前知识点】{node.name}\n"
    context += f"【学段】{LEVEL_LABELS.get(node.level, '')}\n"
    context += f"【分类】{CATEGORY_LABELS.get(node.category, '')}\n\n"

    if node.description:
        context += f"【简介】{node.description}\n\n"
    if node.content:
        context += f"【详细内容】\n{node.content}\n\n"

    prerequisites = _resolve_names(node.prerequisites, index)
    next_topics = _resolve_names(node.next_topics, index)

    if prerequisites:
        context += f"【前置知识点】{NAME_SEPARATOR.join(prerequisites)}\n"
    if next_topics:
        context += f"【后续知识点】{NAME_SEPARATOR.join(next_topics)}\n"

    return context
