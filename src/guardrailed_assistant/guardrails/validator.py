"""Input validation guardrail applied before any other processing."""

from __future__ import annotations

import logging

from guardrailed_assistant.types import ValidationCode, ValidationOutcome

logger = logging.getLogger(__name__)

# Prompt-injection / exfiltration markers. Plain substring matching: rephrased
# attacks slip through and benign text quoting a marker is rejected. Swap the
# tuple (or pass `blocked_markers`) to change the policy.
BLOCKED_MARKERS: tuple[str, ...] = (
    "ignore previous instructions",
    "reveal system prompt",
    "print the hidden",
    "developer message",
)


def validate_user_input(
    text: str | None,
    max_chars: int,
    *,
    blocked_markers: tuple[str, ...] = BLOCKED_MARKERS,
) -> ValidationOutcome:
    """Reject empty, oversized, or known-attack input.

    Length is measured on the trimmed input, so exactly `max_chars` passes and
    `max_chars + 1` fails.
    """

    if text is None or not text.strip():
        return ValidationOutcome.fail(ValidationCode.EMPTY_INPUT, "Please enter a question.")

    trimmed = text.strip()
    if len(trimmed) > max_chars:
        logger.info("Input rejected: length %d exceeds %d", len(trimmed), max_chars)
        return ValidationOutcome.fail(
            ValidationCode.TOO_LONG,
            f"Input too long. Max allowed is {max_chars} characters.",
        )

    lower = trimmed.lower()
    if any(marker.lower() in lower for marker in blocked_markers):
        logger.info("Input rejected: blocked pattern")
        return ValidationOutcome.fail(
            ValidationCode.BLOCKED_PATTERN, "I can't process that request."
        )

    return ValidationOutcome.success()
