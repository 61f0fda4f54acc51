"""Tool dispatch: allowlist, argument validation, and a hard time bound."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from time import perf_counter
from typing import Any

from pydantic import ValidationError

from guardrailed_assistant.agent.registry import ToolRegistry, ToolSpec
from guardrailed_assistant.errors import (
    ToolArgumentInvalid,
    ToolExecutionFailed,
    ToolNotAllowed,
    ToolTimedOut,
)
from guardrailed_assistant.types import Intent, ToolFailure, ToolIntent, ToolOutcome, ToolTrace

logger = logging.getLogger(__name__)

MISUSE_MESSAGE = "Tool execution requested incorrectly."
MISSING_NAME_MESSAGE = "Missing tool name."
NOT_ALLOWED_MESSAGE = "Tool not allowed."
INVALID_ARGUMENTS_MESSAGE = "Invalid tool arguments."
TIMED_OUT_MESSAGE = "Tool timed out. Try again with a simpler request."
EXECUTION_FAILED_MESSAGE = "Tool failed safely. Try again."

_FAILURE_MESSAGES = {
    ToolNotAllowed: (ToolFailure.NOT_ALLOWED, NOT_ALLOWED_MESSAGE),
    ToolArgumentInvalid: (ToolFailure.INVALID_ARGUMENT, INVALID_ARGUMENTS_MESSAGE),
    ToolTimedOut: (ToolFailure.TIMED_OUT, TIMED_OUT_MESSAGE),
    ToolExecutionFailed: (ToolFailure.EXECUTION_FAILED, EXECUTION_FAILED_MESSAGE),
}


class ToolDispatcher:
    """Runs planner-selected tools inside the guardrail boundary.

    Stages, in order: reject non-tool intents, reject a missing name, reject
    names outside the allowlist, validate arguments against the tool's schema,
    then run the handler on a worker thread bounded by `timeout_seconds`.
    Every failure becomes a `ToolOutcome` with a fixed safe message. A timed-out
    handler keeps its worker until it returns, but its result is discarded.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        *,
        timeout_seconds: float = 10.0,
        max_workers: int = 4,
    ) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        self.registry = registry
        self.timeout_seconds = timeout_seconds
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="tool")

    def execute(self, intent: Intent) -> ToolOutcome:
        outcome, _ = self.execute_traced(intent)
        return outcome

    def execute_traced(self, intent: Intent) -> tuple[ToolOutcome, ToolTrace | None]:
        """Execute `intent` and also return a trace of the attempted call."""

        if not isinstance(intent, ToolIntent):
            logger.error("Dispatcher invoked with non-tool intent: %s", type(intent).__name__)
            return ToolOutcome.fail(ToolFailure.MISUSE, MISUSE_MESSAGE), None

        name = intent.name.strip() if isinstance(intent.name, str) else ""
        if not name:
            return ToolOutcome.fail(ToolFailure.MISUSE, MISSING_NAME_MESSAGE), None

        payload = intent.arguments if isinstance(intent.arguments, Mapping) else {}
        start = perf_counter()
        try:
            spec = self._resolve(name)
            arguments = self._validate(spec, intent.arguments)
            output = self._run(spec, arguments)
        except (ToolNotAllowed, ToolArgumentInvalid, ToolTimedOut, ToolExecutionFailed) as exc:
            failure, message = _FAILURE_MESSAGES[type(exc)]
            latency_ms = (perf_counter() - start) * 1000.0
            logger.warning("Tool %s failed: %s (%.1f ms)", name, failure.value, latency_ms)
            trace = ToolTrace(
                name=name,
                input_payload=dict(payload),
                output_preview="",
                latency_ms=latency_ms,
                ok=False,
            )
            return ToolOutcome.fail(failure, message), trace

        latency_ms = (perf_counter() - start) * 1000.0
        logger.info("Tool %s succeeded (%.1f ms)", spec.name, latency_ms)
        trace = ToolTrace(
            name=spec.name,
            input_payload=dict(payload),
            output_preview=output[:320],
            latency_ms=latency_ms,
        )
        return ToolOutcome.success(output), trace

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _resolve(self, name: str) -> ToolSpec:
        spec = self.registry.resolve(name)
        if spec is None:
            raise ToolNotAllowed(name)
        return spec

    @staticmethod
    def _validate(spec: ToolSpec, arguments: Any) -> Any:
        if not isinstance(arguments, Mapping):
            raise ToolArgumentInvalid(f"{spec.name}: arguments must be an object")
        if any(isinstance(value, (Mapping, list, tuple)) for value in arguments.values()):
            raise ToolArgumentInvalid(f"{spec.name}: nested arguments are not permitted")
        try:
            return spec.validate_arguments(arguments)
        except ValidationError as exc:
            raise ToolArgumentInvalid(f"{spec.name}: {exc.error_count()} invalid field(s)") from exc

    def _run(self, spec: ToolSpec, arguments: Any) -> str:
        try:
            future = self._executor.submit(spec.handler, arguments)
        except RuntimeError as exc:
            raise ToolExecutionFailed(f"{spec.name}: dispatcher is closed") from exc
        try:
            output = future.result(timeout=self.timeout_seconds)
        except FutureTimeoutError as exc:
            if not future.done():
                future.cancel()
                raise ToolTimedOut(spec.name) from exc
            raise ToolExecutionFailed(spec.name) from exc
        except Exception as exc:
            logger.debug("Tool %s raised", spec.name, exc_info=True)
            raise ToolExecutionFailed(spec.name) from exc

        if not isinstance(output, str):
            raise ToolExecutionFailed(f"{spec.name}: non-text output")
        return output
