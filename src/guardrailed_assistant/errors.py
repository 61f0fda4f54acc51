"""Exception taxonomy for guardrail boundaries.

Every exception here is raised inside one component and converted to a
caller-safe value at that component's boundary. None of them is meant to reach
the user as-is.
"""

from __future__ import annotations


class GuardrailError(Exception):
    """Base class for all guardrail failures."""


class ArithmeticEvaluationError(GuardrailError, ValueError):
    """Expression could not be evaluated by the closed-grammar calculator."""


class DivisionByZeroError(ArithmeticEvaluationError, ZeroDivisionError):
    """Expression divided by an exact zero."""


class PlanContractViolation(GuardrailError):
    """Model output did not match the plan JSON contract."""


class ModelTransportError(GuardrailError):
    """Chat or embedding call failed (transport, status, or response shape)."""


class IndexBuildError(GuardrailError):
    """Retrieval index could not be built from the fixed corpus."""


class ToolError(GuardrailError):
    """Base class for tool dispatch failures."""


class ToolNotAllowed(ToolError):
    """Tool name is not in the fixed allowlist."""


class ToolArgumentInvalid(ToolError):
    """Tool arguments failed validation."""


class ToolTimedOut(ToolError):
    """Tool did not finish within its time bound."""


class ToolExecutionFailed(ToolError):
    """Tool raised while running."""
