"""Server-sent-event decoding for streamed chat completions.

The response body is a sequence of lines of the form ``data: <json>``,
terminated by ``data: [DONE]`` and/or the end of the transport stream.
Network reads can split a line anywhere, so text chunks go through
SSELineBuffer before each complete line is parsed.
"""

from __future__ import annotations

import json
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class SSELineBuffer:
    """Reassemble complete lines from arbitrarily split text chunks."""

    def __init__(self) -> None:
        self._pending = ""

    def feed(self, text: str) -> list[str]:
        """Add a chunk and return every line it completes."""
        self._pending += text
        *lines, self._pending = self._pending.split("\n")
        return [line.rstrip("\r") for line in lines]

    def flush(self) -> list[str]:
        """Return the unterminated tail, if any, and clear the buffer."""
        tail, self._pending = self._pending.rstrip("\r"), ""
        return [tail] if tail else []


def _extract_delta_content(event: Any) -> str | None:
    """Get choices[0].delta.content from a decoded event."""
    if not isinstance(event, dict):
        return None
    choices = event.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    if isinstance(content, str) and content:
        return content
    return None


def parse_event_line(line: str) -> str | None:
    """Parse one SSE line into a text fragment.

    Args:
        line: A single complete line, without its newline

    Returns:
        The fragment text, or None for blank lines, non-data lines, the
        [DONE] marker, malformed JSON and events without content
    """
    if not line.strip() or not line.startswith(DATA_PREFIX):
        return None

    payload = line[len(DATA_PREFIX):]
    if payload == DONE_SENTINEL:
        return None

    try:
        event = json.loads(payload)
    except (json.JSONDecodeError, RecursionError):
        logger.debug("sse_line_skipped", payload=payload[:100])
        return None

    return _extract_delta_content(event)
