"""Grounded final-answer step."""

from __future__ import annotations

from guardrailed_assistant.agent.planner import ToolPlanner


class Grounder:
    """Produces the user-facing answer from verified tool output only.

    The answer is a function of `(user_input, tool_name, tool_output)`; nothing
    else retrieved or remembered is added. The model acts purely as a
    constrained summarizer.
    """

    def __init__(self, planner: ToolPlanner) -> None:
        self.planner = planner

    def ground(self, user_input: str, tool_name: str, tool_output: str) -> str:
        return self.planner.grounded_answer(user_input, tool_name, tool_output)
