"""Per-turn guardrail orchestration."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime

from guardrailed_assistant.agent.dispatcher import ToolDispatcher
from guardrailed_assistant.agent.grounder import Grounder
from guardrailed_assistant.agent.planner import ToolPlanner
from guardrailed_assistant.agent.tools import build_tool_registry
from guardrailed_assistant.config import AssistantConfig
from guardrailed_assistant.guardrails.policy import try_handle_deterministically
from guardrailed_assistant.guardrails.validator import validate_user_input
from guardrailed_assistant.llm.client import ChatClient, OllamaChatClient
from guardrailed_assistant.obs.tracing import GroundednessEvaluator, Timer
from guardrailed_assistant.retrieval.corpus import default_runbooks
from guardrailed_assistant.retrieval.embedder import Embedder, OllamaEmbedder
from guardrailed_assistant.retrieval.index import RetrievalIndex
from guardrailed_assistant.types import (
    AnswerIntent,
    Document,
    RefuseIntent,
    SearchHit,
    TurnResult,
    TurnRoute,
)

logger = logging.getLogger(__name__)

REFUSAL_MESSAGE = "I can't help with that request."


class GuardrailedAssistant:
    """Runs one user turn through every guardrail stage.

    Flow: validator -> deterministic policy -> planner -> dispatcher -> grounder.
    Each stage can end the turn with a safe message. No state is carried from
    one turn to the next; the retrieval index behind the tools is read-only, so
    `respond` may be called from several threads at once.
    """

    def __init__(
        self,
        *,
        planner: ToolPlanner,
        dispatcher: ToolDispatcher,
        grounder: Grounder,
        max_input_chars: int = 1000,
        groundedness_evaluator: GroundednessEvaluator | None = None,
        index: RetrievalIndex | None = None,
        embedder: Embedder | None = None,
    ) -> None:
        self.planner = planner
        self.dispatcher = dispatcher
        self.grounder = grounder
        self.index = index
        self.embedder = embedder
        self.max_input_chars = max_input_chars
        self._groundedness = groundedness_evaluator or GroundednessEvaluator()

    @classmethod
    def from_config(
        cls,
        config: AssistantConfig,
        *,
        chat_client: ChatClient | None = None,
        embedder: Embedder | None = None,
        documents: Iterable[Document] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> "GuardrailedAssistant":
        """Wire every component and embed the corpus.

        Raises:
            IndexBuildError: a corpus document could not be embedded. Startup
                must fail rather than serve an incomplete index.
        """

        chat_client = chat_client or OllamaChatClient(
            host=config.ollama_url,
            model=config.chat_model,
            timeout_seconds=config.model_timeout_seconds,
        )
        # Search embeds inside a tool call: embedding timeout <= tool timeout.
        embedder = embedder or OllamaEmbedder(
            host=config.ollama_url,
            model=config.embedding_model,
            timeout_seconds=min(config.model_timeout_seconds, config.tool_timeout_seconds),
        )
        index = RetrievalIndex.build(
            documents if documents is not None else default_runbooks(), embedder
        )
        registry = build_tool_registry(
            index,
            embedder,
            top_k=config.retrieval.top_k,
            excerpt_chars=config.retrieval.excerpt_chars,
            clock=clock,
        )
        planner = ToolPlanner(chat_client=chat_client, tool_registry=registry)
        return cls(
            planner=planner,
            dispatcher=ToolDispatcher(registry, timeout_seconds=config.tool_timeout_seconds),
            grounder=Grounder(planner),
            max_input_chars=config.max_input_chars,
            index=index,
            embedder=embedder,
        )

    def respond(self, user_input: str) -> TurnResult:
        with Timer() as timer:
            result = self._respond(user_input)
        result.latency_ms = timer.elapsed_ms
        logger.info("Turn finished: route=%s latency=%.1fms", result.route.value, result.latency_ms)
        return result

    def search_sources(self, query: str, top_k: int) -> list[SearchHit]:
        """Rank corpus documents for `query` without going through the model."""
        if self.index is None or self.embedder is None:
            raise RuntimeError("Assistant was built without a retrieval index")
        return self.index.search(query, top_k, self.embedder)

    def close(self) -> None:
        self.dispatcher.close()

    def _respond(self, user_input: str) -> TurnResult:
        validation = validate_user_input(user_input, self.max_input_chars)
        if not validation.ok:
            return TurnResult(answer=validation.reason or REFUSAL_MESSAGE, route=TurnRoute.REJECTED)

        text = user_input.strip()
        deterministic = try_handle_deterministically(text)
        if deterministic is not None:
            return TurnResult(answer=deterministic, route=TurnRoute.DETERMINISTIC)

        intent = self.planner.plan(text)
        if isinstance(intent, RefuseIntent):
            return TurnResult(answer=REFUSAL_MESSAGE, route=TurnRoute.REFUSED)
        if isinstance(intent, AnswerIntent):
            return TurnResult(answer=intent.text, route=TurnRoute.ANSWERED)

        outcome, trace = self.dispatcher.execute_traced(intent)
        tool_name = trace.name if trace is not None else intent.name
        if not outcome.ok or outcome.output is None:
            return TurnResult(
                answer=outcome.safe_message,
                route=TurnRoute.TOOL_FAILED,
                tool_name=tool_name,
                tool_trace=trace,
            )

        answer = self.grounder.ground(text, tool_name, outcome.output)
        return TurnResult(
            answer=answer,
            route=TurnRoute.GROUNDED,
            tool_name=tool_name,
            tool_trace=trace,
            groundedness=self._groundedness.score(answer, outcome.output),
        )
