"""Guardrailed assistant package."""

from .config import AssistantConfig, RetrievalConfig

__all__ = ["AssistantConfig", "RetrievalConfig"]
