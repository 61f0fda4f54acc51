from fastapi.testclient import TestClient

from guardrailed_assistant.api.main import create_app


def test_api_health_ask_and_source_search(make_assistant) -> None:
    assistant, chat = make_assistant()
    app = create_app(assistant)

    with TestClient(app) as client:
        health_resp = client.get("/health")
        assert health_resp.status_code == 200
        assert health_resp.json() == {
            "status": "ok",
            "tools": ["WorldTime.GetCityTime", "Runbooks.Search"],
        }

        ask_resp = client.post("/ask", json={"question": "Calculate 17*19"})
        assert ask_resp.status_code == 200
        ask_payload = ask_resp.json()
        assert ask_payload["answer"] == "Result: 323"
        assert ask_payload["route"] == "deterministic"
        assert ask_payload["latency_ms"] >= 0.0

        rejected_resp = client.post("/ask", json={"question": "   "})
        assert rejected_resp.status_code == 200
        assert rejected_resp.json()["route"] == "rejected"

        source_resp = client.post(
            "/sources/search",
            json={"query": "DB connection pool saturated", "top_k": 4},
        )
        assert source_resp.status_code == 200
        items = source_resp.json()["items"]
        assert len(items) == 4
        assert items[0]["id"] == "RUN-201"
        assert items[0]["title"] == "DB Connection Pool Runbook"
        assert "connection leaks" in items[0]["body"]
        scores = [item["score"] for item in items]
        assert scores == sorted(scores, reverse=True)

        top_one = client.post(
            "/sources/search",
            json={"query": "DB connection pool saturated", "top_k": 1},
        ).json()["items"]
        assert [item["id"] for item in top_one] == ["RUN-201"]

        default_resp = client.post("/sources/search", json={"query": "redis memory"})
        assert len(default_resp.json()["items"]) == 3

        over_limit_resp = client.post(
            "/sources/search", json={"query": "redis", "top_k": 21}
        )
        assert over_limit_resp.status_code == 422

        invalid_resp = client.post("/sources/search", json={"query": ""})
        assert invalid_resp.status_code == 422

    assert chat.calls == []


def test_api_grounded_answer_includes_trace(make_assistant, plan_json) -> None:
    assistant, _ = make_assistant(
        [
            plan_json("tool", tool_name="WorldTime.GetCityTime", arguments={"city": "Tokyo"}),
            "It is 21:00 in Tokyo.",
        ]
    )

    with TestClient(create_app(assistant)) as client:
        resp = client.post("/ask", json={"question": "What time is it in Tokyo?"})

    payload = resp.json()
    assert payload["route"] == "grounded"
    assert payload["tool_name"] == "WorldTime.GetCityTime"
    assert payload["tool_trace"]["input_payload"] == {"city": "Tokyo"}
