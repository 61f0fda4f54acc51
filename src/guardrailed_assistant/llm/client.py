"""Chat inference clients."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from langchain_core.messages import BaseMessage
from ollama import Client

from guardrailed_assistant.errors import ModelTransportError

logger = logging.getLogger(__name__)

_ROLE_BY_MESSAGE_TYPE = {"system": "system", "human": "user"}


@dataclass(frozen=True, slots=True)
class ChatMessage:
    role: str
    content: str


class ChatClient(Protocol):
    """Minimal chat inference contract: ordered messages in, reply text out."""

    def chat(self, messages: list[ChatMessage]) -> str:
        """Return the assistant reply content, raising on transport failure."""


def to_chat_messages(messages: list[BaseMessage]) -> list[ChatMessage]:
    """Convert rendered LangChain prompt messages into system/user chat messages."""
    converted: list[ChatMessage] = []
    for message in messages:
        role = _ROLE_BY_MESSAGE_TYPE.get(message.type)
        if role is None:
            raise ValueError(f"Unsupported prompt message type: {message.type}")
        converted.append(ChatMessage(role=role, content=str(message.content)))
    return converted


class OllamaChatClient:
    """Non-streaming chat against an Ollama server's `/api/chat` endpoint."""

    def __init__(
        self,
        *,
        host: str,
        model: str,
        timeout_seconds: float | None = None,
        client: Any | None = None,
    ) -> None:
        self.model = model
        self._client = client or Client(host=host, timeout=timeout_seconds)

    def chat(self, messages: list[ChatMessage]) -> str:
        payload = [{"role": message.role, "content": message.content} for message in messages]
        try:
            response = self._client.chat(model=self.model, messages=payload, stream=False)
            content = response["message"]["content"]
        except Exception as exc:
            logger.warning("Chat call failed: %s", type(exc).__name__)
            raise ModelTransportError(f"Chat request failed for model {self.model}") from exc

        if content is None:
            return ""
        if not isinstance(content, str):
            raise ModelTransportError("Chat response content is not text")
        return content
