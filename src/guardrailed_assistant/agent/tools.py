"""Built-in tool implementations for the guardrailed assistant."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator

from guardrailed_assistant.agent.registry import ToolRegistry, ToolSpec
from guardrailed_assistant.retrieval.embedder import Embedder
from guardrailed_assistant.retrieval.index import RetrievalIndex

WORLD_TIME_TOOL = "WorldTime.GetCityTime"
RUNBOOK_SEARCH_TOOL = "Runbooks.Search"

CITY_TIME_ZONES: dict[str, str] = {
    "amsterdam": "Europe/Amsterdam",
    "auckland": "Pacific/Auckland",
    "bangkok": "Asia/Bangkok",
    "berlin": "Europe/Berlin",
    "buenos aires": "America/Argentina/Buenos_Aires",
    "cairo": "Africa/Cairo",
    "chicago": "America/Chicago",
    "denver": "America/Denver",
    "dubai": "Asia/Dubai",
    "dublin": "Europe/Dublin",
    "hong kong": "Asia/Hong_Kong",
    "istanbul": "Europe/Istanbul",
    "johannesburg": "Africa/Johannesburg",
    "london": "Europe/London",
    "los angeles": "America/Los_Angeles",
    "madrid": "Europe/Madrid",
    "mexico city": "America/Mexico_City",
    "moscow": "Europe/Moscow",
    "mumbai": "Asia/Kolkata",
    "new york": "America/New_York",
    "paris": "Europe/Paris",
    "rome": "Europe/Rome",
    "san francisco": "America/Los_Angeles",
    "sao paulo": "America/Sao_Paulo",
    "seoul": "Asia/Seoul",
    "singapore": "Asia/Singapore",
    "stockholm": "Europe/Stockholm",
    "sydney": "Australia/Sydney",
    "tokyo": "Asia/Tokyo",
    "toronto": "America/Toronto",
    "warsaw": "Europe/Warsaw",
}


class _FlatArguments(BaseModel):
    """Flat string arguments. Length bounds apply to the raw value."""

    model_config = ConfigDict(frozen=True)

    @field_validator("*")
    @classmethod
    def _reject_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class CityTimeInput(_FlatArguments):
    city: StrictStr = Field(min_length=1, max_length=64)


class RunbookSearchInput(_FlatArguments):
    query: StrictStr = Field(min_length=1, max_length=500)


def city_time(city: str, *, clock: Callable[[], datetime]) -> str:
    """Deterministic clock lookup for a city from a fixed time-zone table."""
    city = city.strip()
    zone_name = CITY_TIME_ZONES.get(" ".join(city.lower().split()))
    if zone_name is None:
        known = ", ".join(sorted(CITY_TIME_ZONES))
        return f"Time zone for '{city}' is not known. Known cities: {known}."
    try:
        zone = ZoneInfo(zone_name)
    except ZoneInfoNotFoundError:
        return f"Time zone data for '{city}' ({zone_name}) is not available."

    now = clock()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local = now.astimezone(zone)
    return (
        f"City: {city}\n"
        f"Time zone: {zone_name}\n"
        f"Local time: {local.strftime('%Y-%m-%d %H:%M:%S')} (UTC{local.strftime('%z')})"
    )


def format_search_results(
    index: RetrievalIndex,
    embedder: Embedder,
    query: str,
    *,
    top_k: int,
    excerpt_chars: int,
) -> str:
    hits = index.search(query, top_k, embedder)
    if not hits:
        return "No relevant runbook documents found."

    lines = ["Relevant documents:"]
    for hit in hits:
        lines.append(f"- {hit.document.id}: {hit.document.title} (score: {hit.score:.3f})")
        lines.append(f"  Excerpt: {_truncate(hit.document.body, excerpt_chars)}")
    return "\n".join(lines)


def build_tool_registry(
    index: RetrievalIndex,
    embedder: Embedder,
    *,
    top_k: int = 3,
    excerpt_chars: int = 180,
    clock: Callable[[], datetime] | None = None,
) -> ToolRegistry:
    """Build the fixed allowlist.

    Tools:
    - `WorldTime.GetCityTime`: current local time for a known city.
    - `Runbooks.Search`: ranked runbook/incident excerpts for a problem description.
    """

    now = clock or (lambda: datetime.now(timezone.utc))

    def _city_time(input_data: CityTimeInput) -> str:
        return city_time(input_data.city, clock=now)

    def _search(input_data: RunbookSearchInput) -> str:
        return format_search_results(
            index, embedder, input_data.query.strip(), top_k=top_k, excerpt_chars=excerpt_chars
        )

    return ToolRegistry(
        [
            ToolSpec(
                name=WORLD_TIME_TOOL,
                description="Current local time in a city.",
                args_schema=CityTimeInput,
                argument_hint='{"city": "<city>"}',
                handler=_city_time,
            ),
            ToolSpec(
                name=RUNBOOK_SEARCH_TOOL,
                description="Search runbooks and incident reports for an operational problem.",
                args_schema=RunbookSearchInput,
                argument_hint='{"query": "<problem description>"}',
                handler=_search,
            ),
        ]
    )


def _truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."
