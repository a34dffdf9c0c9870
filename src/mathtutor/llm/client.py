"""Chat client for the remote chat-completion service.

Sends a conversation, prefixed by a mode-specific system prompt, to an
OpenAI-compatible chat-completion endpoint (Zhipu GLM by default) and
returns the assistant reply either whole or as streamed fragments.

Each call is stateless. There are no retries; the caller decides.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Literal

import httpx
import structlog
from openai import APIConnectionError, APIStatusError, OpenAI

from mathtutor.config.app_config import ChatSettings
from mathtutor.llm.sse import SSELineBuffer, parse_event_line
from mathtutor.prompts.registry import DEFAULT_MODE, build_system_prompt

logger = structlog.get_logger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_BASE_URL = "https://open.bigmodel.cn/api/paas/v4"
DEFAULT_MODEL = "glm-4-flash"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 1024

GENERIC_FAILURE_MESSAGE = "chat completion request failed"

Role = Literal["system", "user", "assistant"]

# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class ChatConfig:
    """Configuration for ChatClient."""

    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    api_key: str | None = None

    @classmethod
    def from_settings(cls, settings: ChatSettings) -> ChatConfig:
        """Build configuration from the app config chat section.

        The API key is read from the environment here; a missing key is
        only reported when a request is made.
        """
        return cls(
            base_url=settings.base_url,
            model=settings.model,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
            api_key=settings.get_api_key(),
        )


@dataclass
class Message:
    """A chat message."""

    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for API call."""
        return {"role": self.role, "content": self.content}


class ChatError(Exception):
    """Error during chat interaction."""

    pass


class ConfigurationError(ChatError):
    """Client is not configured to make requests (e.g. missing API key)."""

    pass


class ServiceError(ChatError):
    """Service answered with a non-success HTTP status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def _message_to_dict(message: Message | Mapping[str, Any]) -> dict[str, str]:
    if isinstance(message, Message):
        data = message.to_dict()
    else:
        data = {"role": str(message["role"]), "content": str(message["content"])}

    if data["role"] not in ("user", "assistant"):
        raise ValueError(f"Unsupported message role: {data['role']}")
    return data


def _service_error_message(error: APIStatusError) -> str:
    """Message reported by the service, or the generic failure text."""
    # The SDK has already unwrapped the top-level "error" object
    body = error.body
    if isinstance(body, Mapping):
        message = body.get("message")
        if message:
            return str(message)
    return GENERIC_FAILURE_MESSAGE


# =============================================================================
# CHAT CLIENT
# =============================================================================


class ChatClient:
    """Client for mode-aware chat completions.

    The underlying OpenAI SDK client is created on first use so that a
    missing API key surfaces as ConfigurationError at call time.
    """

    def __init__(
        self,
        config: ChatConfig | None = None,
        http_client: httpx.Client | None = None,
    ):
        """Initialize chat client.

        Args:
            config: Chat configuration (defaults to ChatConfig())
            http_client: Optional httpx client for the SDK transport
        """
        self.config = config or ChatConfig()
        self._http_client = http_client
        self._client: OpenAI | None = None

    def _get_client(self) -> OpenAI:
        if not self.config.api_key:
            raise ConfigurationError("API key not configured")

        if self._client is None:
            self._client = OpenAI(
                base_url=self.config.base_url,
                api_key=self.config.api_key,
                max_retries=0,
                http_client=self._http_client,
            )
            logger.info(
                "chat_client_initialized",
                model=self.config.model,
                base_url=self.config.base_url,
            )
        return self._client

    def _build_request(
        self,
        messages: Sequence[Message | Mapping[str, Any]],
        mode: str,
        context: str | None,
        stream: bool = False,
    ) -> dict[str, Any]:
        system_prompt = build_system_prompt(mode, context)

        request_kwargs: dict[str, Any] = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                *(_message_to_dict(m) for m in messages),
            ],
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
        }
        if stream:
            request_kwargs["stream"] = True
        return request_kwargs

    def complete(
        self,
        messages: Sequence[Message | Mapping[str, Any]],
        mode: str = DEFAULT_MODE,
        context: str | None = None,
    ) -> str:
        """Send a chat completion request and return the full reply.

        Args:
            messages: Conversation turns (user/assistant)
            mode: Prompt mode selecting the system prompt
            context: Optional knowledge context appended to the system prompt

        Returns:
            Content of the first choice, or "" if the response has none

        Raises:
            ConfigurationError: If no API key is configured
            ServiceError: If the service returns a non-success status
            openai.APIConnectionError: If the service cannot be reached
        """
        client = self._get_client()
        request_kwargs = self._build_request(messages, mode, context)

        start_time = time.time()

        try:
            response = client.chat.completions.create(**request_kwargs)
        except APIStatusError as e:
            message = _service_error_message(e)
            logger.error("chat_request_failed", status_code=e.status_code, error=message)
            raise ServiceError(message, status_code=e.status_code) from e
        except APIConnectionError as e:
            logger.error("chat_connection_failed", error=str(e))
            raise

        latency_ms = int((time.time() - start_time) * 1000)

        if not response.choices:
            logger.warning("chat_response_empty", model=self.config.model)
            return ""

        content = response.choices[0].message.content or ""

        logger.debug(
            "chat_response",
            mode=mode,
            model=self.config.model,
            chars=len(content),
            latency_ms=latency_ms,
        )
        return content

    def stream(
        self,
        messages: Sequence[Message | Mapping[str, Any]],
        mode: str = DEFAULT_MODE,
        context: str | None = None,
    ) -> Iterator[str]:
        """Send a streaming chat completion request.

        Configuration and prompt errors are raised immediately; HTTP
        errors are raised when iteration starts.

        Yields:
            Text fragments in arrival order
        """
        client = self._get_client()
        request_kwargs = self._build_request(messages, mode, context, stream=True)
        return self._iter_fragments(client, request_kwargs)

    def _iter_fragments(
        self,
        client: OpenAI,
        request_kwargs: dict[str, Any],
    ) -> Iterator[str]:
        decoder = SSELineBuffer()

        try:
            with client.chat.completions.with_streaming_response.create(
                **request_kwargs
            ) as response:
                for text in response.iter_text():
                    for line in decoder.feed(text):
                        fragment = parse_event_line(line)
                        if fragment:
                            yield fragment

                # Transport end-of-stream; parse an unterminated last line
                for line in decoder.flush():
                    fragment = parse_event_line(line)
                    if fragment:
                        yield fragment
        except APIStatusError as e:
            message = _service_error_message(e)
            logger.error("chat_stream_failed", status_code=e.status_code, error=message)
            raise ServiceError(message, status_code=e.status_code) from e
        except (APIConnectionError, httpx.TransportError) as e:
            logger.error("chat_stream_connection_failed", error=str(e))
            raise

    def complete_streaming(
        self,
        messages: Sequence[Message | Mapping[str, Any]],
        mode: str = DEFAULT_MODE,
        context: str | None = None,
        on_fragment: Callable[[str], None] | None = None,
    ) -> str:
        """Stream a chat completion, reporting each fragment as it arrives.

        Args:
            messages: Conversation turns (user/assistant)
            mode: Prompt mode selecting the system prompt
            context: Optional knowledge context appended to the system prompt
            on_fragment: Called once per non-empty fragment, in order

        Returns:
            Full accumulated reply text
        """
        result = ""
        for fragment in self.stream(messages, mode, context):
            result += fragment
            if on_fragment is not None:
                on_fragment(fragment)
        return result
