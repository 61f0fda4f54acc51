"""Deterministic request handling that never reaches the model.

Two rules run in order:

1. Credential / secret / exploit requests are refused from a fixed term list.
   A model-mediated refusal is not a hard boundary, so these never reach the
   planner.
2. Closed-grammar arithmetic (optionally prefixed with "calculate") is computed
   locally.

Both rules are substring/regex checks over a fixed vocabulary. They are blunt on
purpose and documented as replaceable: pass a different `secret_terms` tuple to
change rule 1.
"""

from __future__ import annotations

import logging
import re
from decimal import DecimalException

from guardrailed_assistant.errors import ArithmeticEvaluationError, DivisionByZeroError
from guardrailed_assistant.guardrails.arithmetic import evaluate_expression, format_decimal

logger = logging.getLogger(__name__)

SECRET_TERMS: tuple[str, ...] = (
    "password",
    "api key",
    "secret",
    "token",
    "hack",
    "bypass",
    "exploit",
)

SECRET_REFUSAL = "I can't help with credential, secret, or hacking-related requests."
DIVISION_BY_ZERO_MESSAGE = "I can't divide by zero."
UNSAFE_EXPRESSION_MESSAGE = "I couldn't evaluate that expression safely."

_CALCULATE_PREFIX = re.compile(r"^\s*calculate", flags=re.IGNORECASE)
_ARITHMETIC_CHARS = re.compile(r"[0-9+\-*/().\s]+")


def try_handle_deterministically(
    text: str,
    *,
    secret_terms: tuple[str, ...] = SECRET_TERMS,
) -> str | None:
    """Return a final response for deterministic request classes, else None."""

    stripped = text.strip()

    if contains_secret_request(stripped, secret_terms=secret_terms):
        logger.info("Deterministic refusal: secret/credential request")
        return SECRET_REFUSAL

    return try_compute_arithmetic(stripped)


def contains_secret_request(
    text: str, *, secret_terms: tuple[str, ...] = SECRET_TERMS
) -> bool:
    lower = text.lower()
    return any(term in lower for term in secret_terms)


def try_compute_arithmetic(text: str) -> str | None:
    """Evaluate `text` when it is pure arithmetic, else return None."""

    expression = _CALCULATE_PREFIX.sub("", text, count=1).strip()
    if not _ARITHMETIC_CHARS.fullmatch(expression):
        return None

    try:
        value = evaluate_expression(expression)
    except DivisionByZeroError:
        logger.info("Deterministic arithmetic: division by zero")
        return DIVISION_BY_ZERO_MESSAGE
    except (ArithmeticEvaluationError, DecimalException, RecursionError) as exc:
        logger.info("Deterministic arithmetic failed: %s", type(exc).__name__)
        return UNSAFE_EXPRESSION_MESSAGE

    logger.info("Deterministic arithmetic evaluated")
    return f"Result: {format_decimal(value)}"
