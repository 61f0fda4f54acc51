"""Closed tool allowlist built on Pydantic v2 models."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict


class ToolSpec(BaseModel):
    """Declarative tool specification: argument schema plus handler."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    name: str
    description: str
    args_schema: type[BaseModel]
    argument_hint: str
    handler: Callable[[BaseModel], str]

    def validate_arguments(self, payload: Mapping[str, Any]) -> BaseModel:
        return self.args_schema.model_validate(dict(payload))


class ToolRegistry:
    """Fixed name -> tool table.

    The table is frozen at construction; there is no way to add a tool
    afterwards, so neither users nor the model can introduce new capabilities.
    """

    def __init__(self, specs: Iterable[ToolSpec]) -> None:
        tools: dict[str, ToolSpec] = {}
        for spec in specs:
            key = spec.name.lower()
            if key in tools:
                raise ValueError(f"Tool already registered: {spec.name}")
            tools[key] = spec
        self._tools: Mapping[str, ToolSpec] = MappingProxyType(tools)

    def resolve(self, name: str) -> ToolSpec | None:
        """Look a tool up by case-insensitive name."""
        return self._tools.get(name.strip().lower())

    def names(self) -> list[str]:
        return [spec.name for spec in self._tools.values()]

    def specs(self) -> list[ToolSpec]:
        return list(self._tools.values())

    def describe(self) -> str:
        """Render the allowlist for inclusion in a planning prompt."""
        return "\n".join(
            f'- "{spec.name}" with {spec.argument_hint}: {spec.description}'
            for spec in self._tools.values()
        )
