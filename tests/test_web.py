"""Tests for web/app.py — routes, per-session state and status codes."""

from __future__ import annotations

from unittest.mock import MagicMock

import httpx
import pytest

from config.settings import Settings
from core.models import NormalizedResult, QueryFailure, QueryState, QueryStatus
from web.app import create_app, state_json


# ── Fixtures ───────────────────────────────────────────────────────────────────


def make_settings(**overrides) -> Settings:
    values = {"openai_api_key": "sk-test", "secret_key": "test-secret", "model": "gpt-5-nano"}
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def transport() -> MagicMock:
    fake = MagicMock()
    fake.send.return_value = httpx.Response(
        200,
        json={"output": [
            {"type": "reasoning", "summary": [{"type": "summary_text", "text": "Searched reviews."}]},
            {"type": "message", "content": [{"type": "output_text", "text": "# Acme\n- Churn"}]},
        ]},
    )
    return fake


@pytest.fixture
def client(transport):
    app = create_app(make_settings(), transport_factory=lambda settings: transport)
    app.config["TESTING"] = True
    return app.test_client()


# ── State rendering ────────────────────────────────────────────────────────────


class TestStateJson:
    def test_idle(self):
        assert state_json(QueryState()) == {
            "status": "idle", "content": None, "reasoning": None, "error": None,
        }

    def test_failure_rendered_as_message(self):
        state = QueryState(
            status=QueryStatus.FAILED,
            error=QueryFailure(kind="api", message="bad key", status_code=401),
        )
        assert state_json(state)["error"] == "bad key"

    def test_success(self):
        state = QueryState(
            status=QueryStatus.SUCCEEDED,
            result=NormalizedResult(content="text", reasoning="why"),
        )
        assert state_json(state)["content"] == "text"
        assert state_json(state)["reasoning"] == "why"


# ── Routes ─────────────────────────────────────────────────────────────────────


class TestRoutes:
    def test_index_renders_form(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert b"Pain Points Finder" in response.data

    def test_initial_state_is_idle(self, client):
        assert client.get("/api/state").get_json()["status"] == "idle"

    def test_query_success(self, client, transport):
        response = client.post("/api/query", json={"company_name": "Acme"})

        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == "succeeded"
        assert data["content"] == "# Acme\n- Churn"
        assert data["reasoning"] == "Searched reviews."
        transport.send.assert_called_once()

    def test_state_persists_within_session(self, client):
        client.post("/api/query", json={"company_url": "https://acme.io"})
        assert client.get("/api/state").get_json()["status"] == "succeeded"

    def test_sessions_are_isolated(self, transport):
        app = create_app(make_settings(), transport_factory=lambda settings: transport)
        first, second = app.test_client(), app.test_client()

        first.post("/api/query", json={"company_name": "Acme"})
        assert second.get("/api/state").get_json()["status"] == "idle"

    def test_missing_target_is_400(self, client, transport):
        response = client.post("/api/query", json={})

        assert response.status_code == 400
        assert response.get_json()["error"] == "Please provide a company name or URL."
        transport.send.assert_not_called()

    def test_missing_api_key_is_400(self, transport):
        app = create_app(make_settings(openai_api_key=""), transport_factory=lambda settings: transport)
        response = app.test_client().post("/api/query", json={"company_name": "Acme"})

        assert response.status_code == 400
        assert response.get_json()["error"] == "API Key not found in environment."
        transport.send.assert_not_called()

    def test_api_error_is_502(self, client, transport):
        transport.send.return_value = httpx.Response(401, json={"error": {"message": "bad key"}})
        response = client.post("/api/query", json={"company_name": "Acme"})

        assert response.status_code == 502
        assert response.get_json()["error"] == "bad key"

    def test_unexpected_error_is_500(self, client, transport):
        transport.send.side_effect = RuntimeError("boom")
        response = client.post("/api/query", json={"company_name": "Acme"})

        assert response.status_code == 500
        assert response.get_json()["status"] == "failed"

    def test_reset(self, client):
        client.post("/api/query", json={"company_name": "Acme"})
        response = client.post("/api/reset")
        assert response.get_json()["status"] == "idle"

    def test_query_while_in_flight_is_409(self, transport):
        app = create_app(make_settings(), transport_factory=lambda settings: transport)
        client = app.test_client()
        client.post("/api/query", json={"company_name": "Acme"})

        (controller,) = app.extensions["query_controllers"].values()
        controller._state = QueryState(status=QueryStatus.IN_FLIGHT)
        response = client.post("/api/query", json={"company_name": "Other"})

        assert response.status_code == 409
        assert response.get_json()["status"] == "in_flight"
        assert transport.send.call_count == 1

    def test_markdown_is_sanitized_before_rendering(self, client):
        page = client.get("/").get_data(as_text=True)
        assert "purify.min.js" in page
        assert "DOMPurify.sanitize(marked.parse(" in page


# ── Session bookkeeping ────────────────────────────────────────────────────────


class TestSessions:
    def test_reads_without_cookie_create_no_controllers(self, transport):
        app = create_app(make_settings(), transport_factory=lambda settings: transport)

        for _ in range(50):
            fresh = app.test_client()
            assert fresh.get("/api/state").get_json()["status"] == "idle"
            assert fresh.post("/api/reset").get_json()["status"] == "idle"

        assert len(app.extensions["query_controllers"]) == 0

    def test_sessions_capped_least_recently_used_dropped(self, transport):
        app = create_app(make_settings(max_sessions=2), transport_factory=lambda settings: transport)
        first, second, third = app.test_client(), app.test_client(), app.test_client()

        first.post("/api/query", json={"company_name": "A"})
        second.post("/api/query", json={"company_name": "B"})
        first.get("/api/state")
        third.post("/api/query", json={"company_name": "C"})

        assert len(app.extensions["query_controllers"]) == 2
        assert first.get("/api/state").get_json()["status"] == "succeeded"
        assert second.get("/api/state").get_json()["status"] == "idle"

    def test_busy_sessions_are_not_evicted(self, transport):
        app = create_app(make_settings(max_sessions=1), transport_factory=lambda settings: transport)
        first, second = app.test_client(), app.test_client()
        first.post("/api/query", json={"company_name": "A"})

        (busy,) = app.extensions["query_controllers"].values()
        busy._state = QueryState(status=QueryStatus.IN_FLIGHT)
        second.post("/api/query", json={"company_name": "B"})

        controllers = app.extensions["query_controllers"]
        assert busy in controllers.values()
        assert len(controllers) == 2
