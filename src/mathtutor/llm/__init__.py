"""Chat-completion client and streaming decoder."""

from mathtutor.llm.client import (
    ChatClient,
    ChatConfig,
    ChatError,
    ConfigurationError,
    Message,
    ServiceError,
)
from mathtutor.llm.sse import SSELineBuffer, parse_event_line

__all__ = [
    "ChatClient",
    "ChatConfig",
    "ChatError",
    "ConfigurationError",
    "Message",
    "ServiceError",
    "SSELineBuffer",
    "parse_event_line",
]
