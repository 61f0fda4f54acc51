from __future__ import annotations

import json
from collections.abc import Callable
from datetime import datetime, timezone

import pytest

from guardrailed_assistant.agent.assistant import GuardrailedAssistant
from guardrailed_assistant.config import AssistantConfig
from guardrailed_assistant.errors import ModelTransportError
from guardrailed_assistant.llm.client import ChatMessage
from guardrailed_assistant.retrieval.corpus import default_runbooks
from guardrailed_assistant.retrieval.embedder import HashingEmbedder
from guardrailed_assistant.retrieval.index import RetrievalIndex

FIXED_NOW = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


class ScriptedChatClient:
    """Returns queued responses in order and records every request."""

    def __init__(self, responses: list[str | Exception] | None = None) -> None:
        self._responses = list(responses or [])
        self.calls: list[list[ChatMessage]] = []

    def chat(self, messages: list[ChatMessage]) -> str:
        self.calls.append(list(messages))
        if not self._responses:
            raise ModelTransportError("no scripted response left")
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _plan_json(
    action: str,
    tool_name: str | None = None,
    arguments: object = None,
    answer: str | None = None,
) -> str:
    return json.dumps(
        {"action": action, "toolName": tool_name, "arguments": arguments, "answer": answer}
    )


@pytest.fixture
def plan_json() -> Callable[..., str]:
    """Serializes a plan in the model's wire format."""
    return _plan_json


@pytest.fixture
def scripted_chat() -> type[ScriptedChatClient]:
    return ScriptedChatClient


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture
def embedder() -> HashingEmbedder:
    return HashingEmbedder()


@pytest.fixture
def runbook_index(embedder: HashingEmbedder) -> RetrievalIndex:
    return RetrievalIndex.build(default_runbooks(), embedder)


@pytest.fixture
def make_assistant(embedder: HashingEmbedder) -> Callable[..., tuple[GuardrailedAssistant, ScriptedChatClient]]:
    built: list[GuardrailedAssistant] = []

    def _make(
        responses: list[str | Exception] | None = None,
        **config_overrides: object,
    ) -> tuple[GuardrailedAssistant, ScriptedChatClient]:
        chat = ScriptedChatClient(responses)
        assistant = GuardrailedAssistant.from_config(
            AssistantConfig.model_validate(config_overrides),
            chat_client=chat,
            embedder=embedder,
            clock=lambda: FIXED_NOW,
        )
        built.append(assistant)
        return assistant, chat

    yield _make

    for assistant in built:
        assistant.close()
