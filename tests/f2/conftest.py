"""Fixtures for F2 tests - Knowledge context and progress."""

from datetime import datetime, timedelta, timezone

import pytest

from mathtutor.knowledge.nodes import KnowledgeNode
from mathtutor.progress import MemoryStorage, ProgressStore


class FakeClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        now = self.current
        self.current += timedelta(seconds=1)
        return now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 10, 16, 8, 30, 0, 123000, tzinfo=timezone.utc))


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def store(storage, clock) -> ProgressStore:
    return ProgressStore(storage, clock=clock)


@pytest.fixture
def sample_nodes() -> list[KnowledgeNode]:
    """Small knowledge graph: linear -> quadratic -> quadratic function."""
    return [
        KnowledgeNode(
            id="linear-equation",
            name="一元一次方程",
            level="junior",
            category="algebra",
            next_topics=["quadratic-equation"],
        ),
        KnowledgeNode(
            id="quadratic-equation",
            name="一元二次方程",
            level="junior",
            category="algebra",
            description="形如 ax²+bx+c=0 (a≠0) 的方程。",
            content="求根公式：x = (-b ± √(b²-4ac)) / 2a",
            prerequisites=["linear-equation", "missing-node"],
            next_topics=["quadratic-function"],
        ),
        KnowledgeNode(
            id="quadratic-function",
            name="二次函数",
            level="junior",
            category="functions",
            prerequisites=["quadratic-equation"],
        ),
    ]
