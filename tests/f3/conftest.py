"""Fixtures for F3 tests - Config and CLI."""

from pathlib import Path

import pytest

from mathtutor.config.app_config import clear_config_cache
from mathtutor.prompts import registry

NODES_YAML = """\
nodes:
  - id: linear-equation
    name: 一元一次方程
    level: junior
    category: algebra
    nextTopics: [quadratic-equation]
  - id: quadratic-equation
    name: 一元二次方程
    level: junior
    category: algebra
    description: 形如 ax²+bx+c=0 的方程
    prerequisites: [linear-equation]
"""


@pytest.fixture(autouse=True)
def _isolate_config():
    """Reset config cache and prompt registry around each test."""
    saved = dict(registry.PROMPT_TEMPLATES)
    clear_config_cache()
    yield
    clear_config_cache()
    registry.PROMPT_TEMPLATES.clear()
    registry.PROMPT_TEMPLATES.update(saved)


@pytest.fixture
def data_dir(tmp_path, monkeypatch) -> Path:
    """Data directory with a knowledge file and no config (defaults apply)."""
    data = tmp_path / "data"
    (data / "knowledge").mkdir(parents=True)
    (data / "knowledge" / "nodes_v1.yaml").write_text(NODES_YAML, encoding="utf-8")

    monkeypatch.setenv("MATHTUTOR_DATA_DIR", str(data))
    monkeypatch.delenv("ZHIPU_API_KEY", raising=False)
    return data
