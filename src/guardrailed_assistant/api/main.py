"""FastAPI entrypoint for ask/search/health endpoints."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from guardrailed_assistant.agent.assistant import GuardrailedAssistant
from guardrailed_assistant.config import AssistantConfig
from guardrailed_assistant.errors import ModelTransportError

logger = logging.getLogger(__name__)


class AskRequest(BaseModel):
    question: str


class SourceSearchRequest(BaseModel):
    query: str = Field(min_length=1, max_length=500)
    top_k: int = Field(default=3, ge=1, le=20)


def create_app(
    assistant: GuardrailedAssistant | None = None,
    *,
    config: AssistantConfig | None = None,
) -> FastAPI:
    """Build the API app.

    When no assistant is supplied, one is built from `config` (or the
    environment) during startup, so an unreachable embedding model fails the
    startup instead of the first request.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if getattr(app.state, "assistant", None) is None:
            logging.basicConfig(
                level=logging.INFO,
                format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            )
            app.state.assistant = GuardrailedAssistant.from_config(
                config or AssistantConfig.from_env()
            )
        try:
            yield
        finally:
            app.state.assistant.close()

    app = FastAPI(title="Guardrailed Assistant", version="0.1.0", lifespan=lifespan)
    app.state.assistant = assistant

    def _assistant() -> GuardrailedAssistant:
        current = app.state.assistant
        if current is None:
            raise HTTPException(status_code=503, detail="Assistant is not initialized.")
        return current

    @app.get("/health")
    def health() -> dict[str, Any]:
        current = app.state.assistant
        return {
            "status": "ok" if current is not None else "starting",
            "tools": current.dispatcher.registry.names() if current is not None else [],
        }

    @app.post("/ask")
    def ask(request: AskRequest) -> dict[str, Any]:
        result = _assistant().respond(request.question)
        payload = asdict(result)
        payload["route"] = result.route.value
        return payload

    @app.post("/sources/search")
    def source_search(request: SourceSearchRequest) -> dict[str, Any]:
        current = _assistant()
        if current.index is None:
            raise HTTPException(status_code=503, detail="Source index is not available.")
        try:
            hits = current.search_sources(request.query, request.top_k)
        except ModelTransportError as exc:
            logger.warning("Source search failed: %s", exc)
            raise HTTPException(status_code=502, detail="Source search failed.") from exc
        return {
            "items": [
                {
                    "id": hit.document.id,
                    "title": hit.document.title,
                    "score": hit.score,
                    "body": hit.document.body,
                }
                for hit in hits
            ]
        }

    return app


app = create_app()
