"""Read-only semantic index over a fixed, pre-embedded corpus."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from math import sqrt

from guardrailed_assistant.errors import IndexBuildError
from guardrailed_assistant.retrieval.embedder import Embedder
from guardrailed_assistant.types import Document, IndexEntry, SearchHit

logger = logging.getLogger(__name__)


class RetrievalIndex:
    """Immutable list of (document, vector) entries ranked by cosine similarity.

    The index is built once at startup and never mutated afterwards, so
    concurrent `search` calls need no synchronization.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: tuple[IndexEntry, ...]) -> None:
        self._entries = entries

    @classmethod
    def build(cls, documents: Iterable[Document], embedder: Embedder) -> "RetrievalIndex":
        """Embed every document sequentially.

        Any failure aborts the build: a corpus entry that cannot be embedded
        must not silently drop out of search results.
        """

        entries: list[IndexEntry] = []
        seen_ids: set[str] = set()
        dimension: int | None = None

        for document in documents:
            if document.id in seen_ids:
                raise IndexBuildError(f"Duplicate document id: {document.id}")
            seen_ids.add(document.id)

            try:
                vector = tuple(embedder.embed_query(document.body))
            except Exception as exc:
                logger.error("Failed to embed document %s: %s", document.id, type(exc).__name__)
                raise IndexBuildError(f"Failed to embed document {document.id}") from exc

            if dimension is None:
                dimension = len(vector)
            elif len(vector) != dimension:
                raise IndexBuildError(
                    f"Embedding dimension mismatch for {document.id}: "
                    f"expected {dimension}, got {len(vector)}"
                )
            entries.append(IndexEntry(document=document, vector=vector))

        logger.info("Retrieval index built: %d documents, dimension=%s", len(entries), dimension)
        return cls(tuple(entries))

    @property
    def entries(self) -> tuple[IndexEntry, ...]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def search(self, query: str, top_k: int, embedder: Embedder) -> list[SearchHit]:
        """Return the `top_k` most similar documents, best first.

        Equal scores keep corpus order.
        """

        if top_k <= 0:
            return []
        query_vector = embedder.embed_query(query)
        return self.rank(query_vector, top_k)

    def rank(self, query_vector: list[float], top_k: int) -> list[SearchHit]:
        scored = [
            (cosine_similarity(entry.vector, query_vector), position, entry.document)
            for position, entry in enumerate(self._entries)
        ]
        scored.sort(key=lambda item: (-item[0], item[1]))
        return [SearchHit(document=document, score=score) for score, _, document in scored[:top_k]]


def cosine_similarity(a: tuple[float, ...] | list[float], b: tuple[float, ...] | list[float]) -> float:
    """Cosine of the angle between `a` and `b`; 0.0 when undefined."""
    if not a or not b or len(a) != len(b):
        return 0.0
    numerator = sum(x * y for x, y in zip(a, b, strict=True))
    norm_a = sqrt(sum(x * x for x in a))
    norm_b = sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return numerator / (norm_a * norm_b)
