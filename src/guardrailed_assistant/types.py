"""Shared domain models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class ValidationCode(str, Enum):
    EMPTY_INPUT = "empty_input"
    TOO_LONG = "too_long"
    BLOCKED_PATTERN = "blocked_pattern"


@dataclass(frozen=True, slots=True)
class ValidationOutcome:
    """Result of validating one user input."""

    ok: bool
    reason: str | None = None
    code: ValidationCode | None = None

    @classmethod
    def success(cls) -> "ValidationOutcome":
        return cls(ok=True)

    @classmethod
    def fail(cls, code: ValidationCode, reason: str) -> "ValidationOutcome":
        return cls(ok=False, reason=reason, code=code)


@dataclass(frozen=True, slots=True)
class Document:
    """A knowledge-base document (runbook or incident write-up)."""

    id: str
    title: str
    body: str


@dataclass(frozen=True, slots=True)
class IndexEntry:
    """A document paired with its embedding vector."""

    document: Document
    vector: tuple[float, ...]


@dataclass(frozen=True, slots=True)
class SearchHit:
    """A retrieval result with its cosine similarity score."""

    document: Document
    score: float


@dataclass(frozen=True, slots=True)
class ToolIntent:
    """Planner decided a named tool should run."""

    name: str
    arguments: Any = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("ToolIntent requires a non-empty tool name")


@dataclass(frozen=True, slots=True)
class AnswerIntent:
    """Planner answered directly in free text."""

    text: str


@dataclass(frozen=True, slots=True)
class RefuseIntent:
    """Planner refused; the caller supplies the refusal message."""


Intent = Union[ToolIntent, AnswerIntent, RefuseIntent]


class ToolFailure(str, Enum):
    MISUSE = "misuse"
    NOT_ALLOWED = "not_allowed"
    INVALID_ARGUMENT = "invalid_argument"
    TIMED_OUT = "timed_out"
    EXECUTION_FAILED = "execution_failed"


@dataclass(frozen=True, slots=True)
class ToolOutcome:
    """Result of dispatching a tool intent.

    `output` is populated only on success. `safe_message` never carries raw
    exception detail.
    """

    ok: bool
    output: str | None
    safe_message: str
    failure: ToolFailure | None = None

    @classmethod
    def success(cls, output: str) -> "ToolOutcome":
        return cls(ok=True, output=output, safe_message="")

    @classmethod
    def fail(cls, failure: ToolFailure, safe_message: str) -> "ToolOutcome":
        return cls(ok=False, output=None, safe_message=safe_message, failure=failure)


@dataclass(slots=True)
class ToolTrace:
    """Trace record for an executed tool call."""

    name: str
    input_payload: dict[str, Any]
    output_preview: str
    latency_ms: float
    ok: bool = True


class TurnRoute(str, Enum):
    REJECTED = "rejected"
    DETERMINISTIC = "deterministic"
    REFUSED = "refused"
    ANSWERED = "answered"
    TOOL_FAILED = "tool_failed"
    GROUNDED = "grounded"


@dataclass(slots=True)
class TurnResult:
    """Final outcome of one assistant turn."""

    answer: str
    route: TurnRoute
    tool_name: str | None = None
    tool_trace: ToolTrace | None = None
    latency_ms: float = 0.0
    groundedness: float | None = None
