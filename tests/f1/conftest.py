"""Fixtures for F1 tests - Chat client and prompts."""

import json
from typing import Any, Callable

import httpx
import pytest

from mathtutor.llm.client import ChatClient, ChatConfig
from mathtutor.prompts import registry


class RecordingTransport(httpx.MockTransport):
    """Mock transport that records every request it answers."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    @property
    def last_body(self) -> dict[str, Any]:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def make_client():
    """Build a ChatClient whose HTTP traffic goes to a handler function."""

    def _make(
        handler: Callable[[httpx.Request], httpx.Response],
        api_key: str | None = "test-key",
    ) -> tuple[ChatClient, RecordingTransport]:
        transport = RecordingTransport(handler)
        client = ChatClient(
            ChatConfig(api_key=api_key),
            http_client=httpx.Client(transport=transport),
        )
        return client, transport

    return _make


@pytest.fixture
def restore_prompt_templates():
    """Undo prompt-mode registrations made by a test."""
    saved = dict(registry.PROMPT_TEMPLATES)
    yield
    registry.PROMPT_TEMPLATES.clear()
    registry.PROMPT_TEMPLATES.update(saved)
