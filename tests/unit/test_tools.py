from datetime import datetime

from guardrailed_assistant.agent.tools import (
    CITY_TIME_ZONES,
    city_time,
    format_search_results,
)


def test_city_time_renders_local_time_for_known_city(fixed_clock) -> None:
    london = city_time("London", clock=fixed_clock)
    tokyo = city_time("  tokyo ", clock=fixed_clock)

    assert london == (
        "City: London\n"
        "Time zone: Europe/London\n"
        "Local time: 2024-01-15 12:00:00 (UTC+0000)"
    )
    assert "Time zone: Asia/Tokyo" in tokyo
    assert "2024-01-15 21:00:00 (UTC+0900)" in tokyo


def test_multi_word_city_lookup_normalizes_spacing(fixed_clock) -> None:
    output = city_time("New   York", clock=fixed_clock)

    assert "America/New_York" in output
    assert "07:00:00 (UTC-0500)" in output


def test_naive_clock_is_treated_as_utc() -> None:
    output = city_time("Paris", clock=lambda: datetime(2024, 7, 1, 10, 0, 0))

    assert "12:00:00 (UTC+0200)" in output


def test_unknown_city_lists_known_cities(fixed_clock) -> None:
    output = city_time("Atlantis", clock=fixed_clock)

    assert output.startswith("Time zone for 'Atlantis' is not known.")
    assert "london" in output
    assert len(CITY_TIME_ZONES) > 20


def test_search_results_render_ranked_excerpts(runbook_index, embedder) -> None:
    output = format_search_results(
        runbook_index, embedder, "DB connection pool saturated", top_k=2, excerpt_chars=180
    )

    lines = output.splitlines()
    assert lines[0] == "Relevant documents:"
    assert lines[1].startswith("- RUN-201: DB Connection Pool Runbook (score: ")
    assert lines[2].startswith("  Excerpt: If the app slows down")
    assert len(lines) == 5


def test_search_excerpts_are_truncated(runbook_index, embedder) -> None:
    output = format_search_results(
        runbook_index, embedder, "redis memory", top_k=4, excerpt_chars=20
    )

    excerpts = [line for line in output.splitlines() if line.startswith("  Excerpt: ")]
    assert len(excerpts) == 4
    assert all(line.endswith("...") for line in excerpts)
    assert all(len(line) == len("  Excerpt: ") + 20 + 3 for line in excerpts)
