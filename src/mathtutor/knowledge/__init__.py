"""Knowledge graph records and prompt-context formatting."""

from mathtutor.knowledge.context import build_context
from mathtutor.knowledge.nodes import (
    CATEGORY_LABELS,
    LEVEL_LABELS,
    KnowledgeNode,
    find_node,
    load_knowledge_nodes,
)

__all__ = [
    "CATEGORY_LABELS",
    "LEVEL_LABELS",
    "KnowledgeNode",
    "build_context",
    "find_node",
    "load_knowledge_nodes",
]
