"""Closed-grammar arithmetic evaluator.

Grammar (no unary operators)::

    expression := term (("+" | "-") term)*
    term       := factor (("*" | "/") factor)*
    factor     := number | "(" expression ")"
    number     := [0-9.]+

Values are `Decimal` so short inputs such as ``0.1+0.2`` come out exact. The
character-class check in `guardrails.policy` is the security boundary; this
parser only has to be correct for what that check lets through.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from guardrailed_assistant.errors import ArithmeticEvaluationError, DivisionByZeroError

_NUMBER_CHARS = frozenset("0123456789.")


def evaluate_expression(expression: str) -> Decimal:
    """Evaluate `expression`, requiring the whole string to be consumed."""
    parser = _ExpressionParser(expression)
    value = parser.parse_expression()
    parser.skip_whitespace()
    if not parser.at_end():
        raise ArithmeticEvaluationError(f"Unexpected character at position {parser.position}")
    return value


def format_decimal(value: Decimal) -> str:
    """Render a result without exponent notation."""
    if value == 0:
        return "0"
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


class _ExpressionParser:
    def __init__(self, text: str) -> None:
        self._text = text
        self.position = 0

    def parse_expression(self) -> Decimal:
        value = self._parse_term()
        while True:
            self.skip_whitespace()
            if self._match("+"):
                value += self._parse_term()
            elif self._match("-"):
                value -= self._parse_term()
            else:
                return value

    def _parse_term(self) -> Decimal:
        value = self._parse_factor()
        while True:
            self.skip_whitespace()
            if self._match("*"):
                value *= self._parse_factor()
            elif self._match("/"):
                denominator = self._parse_factor()
                if denominator == 0:
                    raise DivisionByZeroError("Division by zero")
                value /= denominator
            else:
                return value

    def _parse_factor(self) -> Decimal:
        self.skip_whitespace()
        if self._match("("):
            inner = self.parse_expression()
            self.skip_whitespace()
            if not self._match(")"):
                raise ArithmeticEvaluationError("Missing ')'")
            return inner
        return self._parse_number()

    def _parse_number(self) -> Decimal:
        start = self.position
        while not self.at_end() and self._text[self.position] in _NUMBER_CHARS:
            self.position += 1
        if start == self.position:
            raise ArithmeticEvaluationError(f"Expected number at position {start}")

        token = self._text[start : self.position]
        try:
            return Decimal(token)
        except InvalidOperation as exc:
            raise ArithmeticEvaluationError(f"Bad number: {token}") from exc

    def skip_whitespace(self) -> None:
        while not self.at_end() and self._text[self.position].isspace():
            self.position += 1

    def at_end(self) -> bool:
        return self.position >= len(self._text)

    def _match(self, char: str) -> bool:
        if not self.at_end() and self._text[self.position] == char:
            self.position += 1
            return True
        return False
