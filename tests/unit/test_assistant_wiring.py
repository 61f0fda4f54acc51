import pytest

from guardrailed_assistant.agent import assistant as assistant_module
from guardrailed_assistant.agent.assistant import GuardrailedAssistant
from guardrailed_assistant.config import AssistantConfig
from guardrailed_assistant.retrieval.embedder import HashingEmbedder


class RecordingEmbedder(HashingEmbedder):
    built: list[dict] = []

    def __init__(self, **kwargs) -> None:
        super().__init__()
        RecordingEmbedder.built.append(kwargs)


@pytest.fixture
def recording_embedder(monkeypatch):
    RecordingEmbedder.built = []
    monkeypatch.setattr(assistant_module, "OllamaEmbedder", RecordingEmbedder)
    return RecordingEmbedder


@pytest.mark.parametrize(
    ("model_timeout", "tool_timeout", "expected"),
    [(60.0, 10.0, 10.0), (5.0, 10.0, 5.0)],
)
def test_embedding_timeout_never_exceeds_tool_timeout(
    recording_embedder, scripted_chat, model_timeout, tool_timeout, expected
) -> None:
    config = AssistantConfig(
        model_timeout_seconds=model_timeout, tool_timeout_seconds=tool_timeout
    )

    assistant = GuardrailedAssistant.from_config(config, chat_client=scripted_chat())
    assistant.close()

    assert recording_embedder.built[0]["timeout_seconds"] == expected
    assert recording_embedder.built[0]["model"] == config.embedding_model


def test_search_sources_ranks_corpus(make_assistant) -> None:
    assistant, chat = make_assistant()

    hits = assistant.search_sources("DB connection pool saturated", 2)

    assert hits[0].document.id == "RUN-201"
    assert len(hits) == 2
    assert chat.calls == []


def test_search_sources_requires_index(make_assistant) -> None:
    built, _ = make_assistant()
    bare = GuardrailedAssistant(
        planner=built.planner, dispatcher=built.dispatcher, grounder=built.grounder
    )

    with pytest.raises(RuntimeError):
        bare.search_sources("redis", 1)
