"""Turn timing and groundedness evaluation."""

from __future__ import annotations

import re
import time

_TOKEN_PATTERN = re.compile(r"\w+|[^\w\s]", flags=re.UNICODE)
_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")


class GroundednessEvaluator:
    """Computes how much of an answer is supported by tool output.

    Metric definition used here:
    - Split the answer into sentences.
    - A sentence is grounded if its token set overlaps at least one non-empty
      line of the tool output by ratio >= `min_overlap`.
    - A sentence that is exactly the fallback "I don't know." is always
      grounded: declining to answer adds no facts.

    This is a deterministic proxy for monitoring; it never changes the answer.
    """

    def __init__(self, min_overlap: float = 0.35, fallback: str = "I don't know.") -> None:
        self.min_overlap = min_overlap
        self._fallback = fallback.lower()

    def score(self, answer: str, tool_output: str) -> float:
        sentences = [
            sentence.strip() for sentence in _SENTENCE_SPLIT.split(answer) if sentence.strip()
        ]
        if not sentences:
            return 1.0

        source_token_sets = [
            set(self._normalize(line)) for line in tool_output.splitlines() if line.strip()
        ]
        grounded = 0
        for sentence in sentences:
            if sentence.lower() == self._fallback:
                grounded += 1
                continue
            sentence_tokens = set(self._normalize(sentence))
            if not sentence_tokens:
                grounded += 1
                continue
            if any(
                self._overlap(sentence_tokens, source_tokens) >= self.min_overlap
                for source_tokens in source_token_sets
            ):
                grounded += 1

        return grounded / len(sentences)

    @staticmethod
    def _normalize(text: str) -> list[str]:
        return [token.lower() for token in _TOKEN_PATTERN.findall(text)]

    @staticmethod
    def _overlap(a: set[str], b: set[str]) -> float:
        if not a or not b:
            return 0.0
        return len(a & b) / len(a)


class Timer:
    """Simple context timer used per turn."""

    def __init__(self) -> None:
        self._start = 0.0
        self.elapsed_ms = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000.0
