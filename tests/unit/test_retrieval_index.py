import pytest

from guardrailed_assistant.errors import IndexBuildError
from guardrailed_assistant.retrieval.corpus import default_runbooks
from guardrailed_assistant.retrieval.embedder import Embedder, HashingEmbedder
from guardrailed_assistant.retrieval.index import RetrievalIndex, cosine_similarity
from guardrailed_assistant.types import Document


class TableEmbedder(Embedder):
    """Maps known texts to fixed vectors."""

    def __init__(self, table: dict[str, list[float]]) -> None:
        self.table = table
        self.calls: list[str] = []

    def embed_query(self, text: str) -> list[float]:
        self.calls.append(text)
        return self.table[text]


def _doc(doc_id: str, body: str) -> Document:
    return Document(id=doc_id, title=f"Title {doc_id}", body=body)


def test_cosine_similarity_edge_cases() -> None:
    assert cosine_similarity([1.0, 0.0], [1.0, 0.0]) == pytest.approx(1.0)
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
    assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)
    assert cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0]) == 0.0
    assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0
    assert cosine_similarity([], []) == 0.0


def test_build_embeds_each_document_once_in_order() -> None:
    embedder = TableEmbedder({"a": [1.0, 0.0], "b": [0.0, 1.0], "c": [1.0, 1.0]})
    docs = [_doc("A", "a"), _doc("B", "b"), _doc("C", "c")]

    index = RetrievalIndex.build(docs, embedder)

    assert embedder.calls == ["a", "b", "c"]
    assert len(index) == 3
    assert [entry.document.id for entry in index.entries] == ["A", "B", "C"]
    assert index.entries[0].vector == (1.0, 0.0)


def test_build_failure_aborts_and_names_document() -> None:
    embedder = TableEmbedder({"a": [1.0, 0.0]})

    with pytest.raises(IndexBuildError, match="B"):
        RetrievalIndex.build([_doc("A", "a"), _doc("B", "missing")], embedder)


def test_build_rejects_duplicate_ids_and_dimension_mismatch() -> None:
    embedder = TableEmbedder({"a": [1.0, 0.0], "b": [1.0, 0.0, 0.0]})

    with pytest.raises(IndexBuildError, match="Duplicate"):
        RetrievalIndex.build([_doc("A", "a"), _doc("A", "a")], embedder)
    with pytest.raises(IndexBuildError, match="dimension"):
        RetrievalIndex.build([_doc("A", "a"), _doc("B", "b")], embedder)


def test_search_orders_by_score_and_truncates() -> None:
    embedder = TableEmbedder(
        {"a": [1.0, 0.0], "b": [0.0, 1.0], "c": [1.0, 1.0], "query": [1.0, 0.2]}
    )
    index = RetrievalIndex.build([_doc("A", "a"), _doc("B", "b"), _doc("C", "c")], embedder)

    hits = index.search("query", 2, embedder)

    assert [hit.document.id for hit in hits] == ["A", "C"]
    assert hits[0].score >= hits[1].score
    assert index.search("query", 10, embedder)[-1].document.id == "B"
    assert index.search("query", 0, embedder) == []


def test_equal_scores_keep_corpus_order() -> None:
    embedder = TableEmbedder({"x": [0.5, 0.5], "y": [0.5, 0.5], "z": [0.0, 1.0], "q": [1.0, 1.0]})
    index = RetrievalIndex.build([_doc("Z", "z"), _doc("X", "x"), _doc("Y", "y")], embedder)

    hits = index.search("q", 3, embedder)

    assert [hit.document.id for hit in hits] == ["X", "Y", "Z"]


def test_query_identical_to_document_ranks_first_with_unit_score() -> None:
    embedder = HashingEmbedder()
    docs = default_runbooks()
    index = RetrievalIndex.build(docs, embedder)
    target = docs[2]

    hits = index.search(target.body, 4, embedder)

    assert hits[0].document.id == target.id
    assert hits[0].score == pytest.approx(1.0)


def test_search_is_deterministic_and_does_not_mutate_index(runbook_index, embedder) -> None:
    before = runbook_index.entries

    first = runbook_index.search("DB connection pool saturated", 3, embedder)
    second = runbook_index.search("DB connection pool saturated", 3, embedder)

    assert [(h.document.id, h.score) for h in first] == [(h.document.id, h.score) for h in second]
    assert first[0].document.id == "RUN-201"
    assert runbook_index.entries is before
