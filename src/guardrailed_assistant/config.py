"""Configuration models for the guardrailed assistant."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field


class RetrievalConfig(BaseModel):
    """Configures runbook search ranking and excerpt rendering."""

    top_k: int = Field(default=3, ge=1)
    excerpt_chars: int = Field(default=180, ge=20)


class AssistantConfig(BaseModel):
    """Configures model endpoints and guardrail limits."""

    ollama_url: str = Field(default="http://localhost:11434", min_length=1)
    chat_model: str = Field(default="llama3.2:3b", min_length=1)
    embedding_model: str = Field(default="nomic-embed-text:latest", min_length=1)
    max_input_chars: int = Field(default=1000, ge=1)
    tool_timeout_seconds: float = Field(default=10.0, gt=0.0)
    model_timeout_seconds: float = Field(default=60.0, gt=0.0)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)

    @classmethod
    def from_env(cls) -> "AssistantConfig":
        """Build a config from environment variables, keeping defaults for unset keys."""
        overrides: dict[str, str] = {}
        for field_name, env_name in (
            ("ollama_url", "OLLAMA_URL"),
            ("chat_model", "CHAT_MODEL"),
            ("embedding_model", "EMBED_MODEL"),
            ("max_input_chars", "MAX_INPUT_CHARS"),
            ("tool_timeout_seconds", "TOOL_TIMEOUT_SECONDS"),
            ("model_timeout_seconds", "MODEL_TIMEOUT_SECONDS"),
        ):
            value = os.getenv(env_name)
            if value:
                overrides[field_name] = value
        return cls.model_validate(overrides)
