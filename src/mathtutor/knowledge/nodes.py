"""Knowledge graph nodes.

Nodes are read-only records loaded from data/knowledge/nodes_v1.yaml
(YAML or JSON). Only the context builder consumes them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Display labels; unknown keys render as an empty label
LEVEL_LABELS: dict[str, str] = {
    "primary": "小学",
    "junior": "初中",
    "senior": "高中",
}

CATEGORY_LABELS: dict[str, str] = {
    "algebra": "代数",
    "geometry": "几何",
    "statistics": "统计概率",
    "functions": "函数",
    "sequences": "数列",
    "calculus": "微积分",
}


@dataclass
class KnowledgeNode:
    """A single knowledge point in the curriculum graph."""

    id: str
    name: str
    level: str
    category: str
    description: str | None = None
    content: str | None = None
    prerequisites: list[str] = field(default_factory=list)
    next_topics: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> KnowledgeNode:
        """Build a node from a YAML/JSON record (camelCase keys accepted)."""
        next_topics = data.get("nextTopics", data.get("next_topics")) or []
        return cls(
            id=str(data["id"]),
            name=data.get("name", str(data["id"])),
            level=data.get("level", ""),
            category=data.get("category", ""),
            description=data.get("description"),
            content=data.get("content"),
            prerequisites=[str(p) for p in data.get("prerequisites") or []],
            next_topics=[str(n) for n in next_topics],
        )


def load_knowledge_nodes(path: Path) -> list[KnowledgeNode]:
    """Load knowledge nodes from a YAML or JSON file.

    The file holds either a bare list of nodes or a mapping with a
    ``nodes`` list.

    Args:
        path: Path to the nodes file

    Returns:
        List of nodes (empty if the file does not exist)
    """
    if not path.exists():
        logger.warning("knowledge_file_not_found", path=str(path))
        return []

    data = yaml.safe_load(path.read_text(encoding="utf-8")) or []
    records = data.get("nodes", []) if isinstance(data, dict) else data

    nodes = [KnowledgeNode.from_dict(record) for record in records]
    logger.debug("knowledge_nodes_loaded", path=str(path), count=len(nodes))
    return nodes


def find_node(nodes: list[KnowledgeNode], node_id: str) -> KnowledgeNode | None:
    """Return the first node with the given id, or None."""
    for node in nodes:
        if node.id == node_id:
            return node
    return None
