"""Embedding abstractions, a deterministic baseline, and the Ollama adapter."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from hashlib import blake2b
from math import sqrt
from typing import Any

from ollama import Client

from guardrailed_assistant.errors import ModelTransportError

logger = logging.getLogger(__name__)


class Embedder(ABC):
    """Embedder interface used by index construction and search."""

    @abstractmethod
    def embed_query(self, text: str) -> list[float]:
        """Embed one text."""

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed many texts, one call each, in order."""
        return [self.embed_query(text) for text in texts]


class HashingEmbedder(Embedder):
    """Deterministic sparse-like embedding without external model calls.

    Used for offline runs and tests. Identical text always maps to the identical
    vector, so a query equal to a document body scores 1.0 against it.
    """

    def __init__(self, dimension: int = 256) -> None:
        self.dimension = dimension

    def embed_query(self, text: str) -> list[float]:
        vector = [0.0 for _ in range(self.dimension)]
        tokens = text.lower().split()
        if not tokens:
            return vector

        for token in tokens:
            digest = blake2b(token.encode("utf-8"), digest_size=8).digest()
            idx = int.from_bytes(digest[:4], "little") % self.dimension
            sign = -1.0 if digest[4] % 2 else 1.0
            vector[idx] += sign

        norm = sqrt(sum(value * value for value in vector))
        if norm == 0:
            return vector
        return [value / norm for value in vector]


class OllamaEmbedder(Embedder):
    """Embeds text through an Ollama server's embeddings endpoint."""

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

    def embed_query(self, text: str) -> list[float]:
        try:
            response = self._client.embeddings(model=self.model, prompt=text)
            embedding = response["embedding"]
        except Exception as exc:
            logger.warning("Embedding call failed: %s", type(exc).__name__)
            raise ModelTransportError(f"Embedding request failed for model {self.model}") from exc

        if not embedding:
            raise ModelTransportError(f"Embedding model {self.model} returned an empty vector")
        return [float(value) for value in embedding]
