# =============================================================================
# tests/test_api.py - HTTP API Tests
# =============================================================================
# Runs the FastAPI app in-process with every integration swapped out through
# app.dependency_overrides (in-memory store, fake completion, example sheet
# data, mocked webhook transport).
# =============================================================================

from unittest.mock import MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from app.dependencies import (
    get_completion_client,
    get_enrichment_client,
    get_notifier,
    get_optional_store,
    get_sheets_client,
    get_store,
)
from app.exceptions import UpstreamError
from app.main import app
from core.services.notification_service import NotificationService
from lib.sheets_client import GoogleSheetsClient

API = "/api/v1"
WEBHOOK_URL = "https://n8n.example.com/webhook/quarterback"


@pytest.fixture
def webhook_http():
    mock = MagicMock()
    mock.post.return_value = httpx.Response(200, request=httpx.Request("POST", WEBHOOK_URL))
    return mock


@pytest.fixture
def client(store, completion, webhook_http):
    notifier = NotificationService(WEBHOOK_URL, http_client=webhook_http)
    sheets = GoogleSheetsClient(api_key=None, sheet_id="sheet", sheet_name="Tab")

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_optional_store] = lambda: store
    app.dependency_overrides[get_completion_client] = lambda: completion
    app.dependency_overrides[get_enrichment_client] = lambda: completion
    app.dependency_overrides[get_sheets_client] = lambda: sheets
    app.dependency_overrides[get_notifier] = lambda: notifier

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def _sent_events(webhook_http: MagicMock) -> list[str]:
    return [call.kwargs["json"]["event"] for call in webhook_http.post.call_args_list]


# =============================================================================
# Query Persona
# =============================================================================

class TestQueryPersona:
    """Test POST /query-persona."""

    def test_answers_and_stores_both_messages(self, client, store, persona_row):
        response = client.post(
            f"{API}/query-persona",
            json={"personaId": persona_row["id"], "query": "What do you read?"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["response"] == "We read the Guardian."
        assert body["personaName"] == "Informed Professionals"
        messages = store.messages_for(body["conversationId"])
        assert [m["role"] for m in messages] == ["user", "assistant"]

    def test_continues_given_conversation(self, client, store, persona_row):
        first = client.post(
            f"{API}/query-persona",
            json={"personaId": persona_row["id"], "query": "Hi"},
        ).json()

        second = client.post(
            f"{API}/query-persona",
            json={
                "personaId": persona_row["id"],
                "conversationId": first["conversationId"],
                "query": "And then?",
            },
        ).json()

        assert second["conversationId"] == first["conversationId"]
        assert len(store.messages_for(first["conversationId"])) == 4

    @pytest.mark.parametrize("body", [
        {"query": "What do you read?"},
        {"personaId": "p-1"},
        {"personaId": "p-1", "query": "   "},
    ])
    def test_missing_fields_rejected(self, client, store, completion, body):
        response = client.post(f"{API}/query-persona", json=body)

        assert response.status_code == 400
        assert response.json()["detail"] == "Missing required fields: personaId and query"
        assert store.tables["messages"] == {}
        assert completion.calls == []

    def test_unknown_persona(self, client, store):
        response = client.post(
            f"{API}/query-persona",
            json={"personaId": "missing", "query": "Hi"},
        )

        assert response.status_code == 404
        assert response.json()["code"] == "PERSONA_NOT_FOUND"
        assert store.tables["messages"] == {}

    def test_webhook_sent_after_reply(self, client, persona_row, webhook_http):
        client.post(
            f"{API}/query-persona",
            json={"personaId": persona_row["id"], "query": "Hi"},
        )

        assert _sent_events(webhook_http) == ["query_completed"]

    def test_webhook_failure_does_not_change_response(self, client, persona_row, webhook_http):
        webhook_http.post.side_effect = httpx.ConnectError("connection refused")

        response = client.post(
            f"{API}/query-persona",
            json={"personaId": persona_row["id"], "query": "Hi"},
        )

        assert response.status_code == 200
        assert response.json()["response"] == "We read the Guardian."

    def test_upstream_failure_is_500(self, client, store, completion, persona_row):
        completion.error = UpstreamError("openai", "Service unavailable", status=503)

        response = client.post(
            f"{API}/query-persona",
            json={"personaId": persona_row["id"], "query": "Hi"},
        )

        assert response.status_code == 500
        assert "Service unavailable" in response.json()["detail"]


class TestConversationEndpoints:
    """Test conversation open / query / transcript."""

    def test_open_then_query_then_list(self, client, persona_row):
        opened = client.post(f"{API}/personas/{persona_row['id']}/conversations")
        assert opened.status_code == 201
        conversation_id = opened.json()["conversation_id"]
        assert opened.json()["greeting"].startswith("I am the Informed Professionals persona.")

        turn = client.post(
            f"{API}/conversations/{conversation_id}/query",
            json={"personaId": persona_row["id"], "query": "What do you read?"},
        )
        assert turn.status_code == 200

        transcript = client.get(f"{API}/conversations/{conversation_id}/messages").json()
        assert transcript["count"] == 2
        assert [m["role"] for m in transcript["messages"]] == ["user", "assistant"]

    def test_unknown_conversation(self, client, persona_row):
        response = client.post(
            f"{API}/conversations/missing/query",
            json={"personaId": persona_row["id"], "query": "Hi"},
        )

        assert response.status_code == 404


# =============================================================================
# Personas
# =============================================================================

class TestPersonaEndpoints:
    """Test persona CRUD endpoints."""

    def test_upload_csv(self, client, store, sample_csv_bytes, webhook_http):
        response = client.post(
            f"{API}/personas",
            files={"file": ("audience.csv", sample_csv_bytes, "text/csv")},
            data={"project_id": "proj-1"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Persona from audience.csv"
        assert body["data_points"] == 2
        assert body["csv_file_path"].startswith("proj-1/")
        assert body["csv_file_path"] in store.files
        assert _sent_events(webhook_http) == ["persona_created"]

    def test_upload_wrong_type(self, client, store):
        response = client.post(
            f"{API}/personas",
            files={"file": ("audience.txt", b"a,b\n1,2\n", "text/plain")},
        )

        assert response.status_code == 400
        assert store.tables["personas"] == {}

    def test_get_and_list(self, client, persona_row):
        fetched = client.get(f"{API}/personas/{persona_row['id']}")
        listed = client.get(f"{API}/personas")

        assert fetched.status_code == 200
        assert fetched.json()["raw_data"][0]["Value"] == "Guardian"
        assert listed.json()["count"] == 1

    def test_get_unknown(self, client):
        assert client.get(f"{API}/personas/missing").status_code == 404

    def test_delete_cascades(self, client, store, persona_row):
        client.post(
            f"{API}/query-persona",
            json={"personaId": persona_row["id"], "query": "Hi"},
        )

        response = client.delete(f"{API}/personas/{persona_row['id']}")

        assert response.json() == {"success": True, "message": "Persona deleted successfully"}
        assert store.tables["conversations"] == {}
        assert store.tables["messages"] == {}

    def test_enrich(self, client, store, completion, persona_row, webhook_http):
        completion.json_reply = {"name": "Urban Readers", "contentPreferences": ["Long reads"]}

        response = client.post(f"{API}/personas/{persona_row['id']}/enrich")

        assert response.status_code == 200
        assert response.json()["enrichedData"] == {
            "name": "Urban Readers",
            "contentPreferences": ["Long reads"],
        }
        assert store.fetch_persona(persona_row["id"])["name"] == "Urban Readers"
        assert _sent_events(webhook_http) == ["persona_enriched"]

    def test_get_after_enrichment_with_numeric_demographics(self, client, completion, persona_row):
        completion.json_reply = {
            "name": {"first": "Urban"},
            "demographics": {"percentage": 14, "genderSplit": {"male": 60}},
        }

        client.post(f"{API}/personas/{persona_row['id']}/enrich")
        fetched = client.get(f"{API}/personas/{persona_row['id']}")

        assert fetched.status_code == 200
        assert fetched.json()["name"] == "Informed Professionals"
        assert fetched.json()["demographics"]["genderSplit"] == {"male": 60}


# =============================================================================
# Sheets, Templates, Diagnostics
# =============================================================================

class TestSheetsEndpoints:
    def test_list_available(self, client):
        body = client.get(f"{API}/sheets-import").json()

        assert body["success"] is True
        assert body["available_personas"][0]["name"] == "Informed Professionals"

    def test_connection_check(self, client):
        body = client.get(f"{API}/sheets-import", params={"test": "1"}).json()

        assert body["success"] is False

    def test_import(self, client, store):
        response = client.post(
            f"{API}/sheets-import",
            json={"personaName": "Informed", "projectId": "proj-1"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["persona"]["name"] == "Informed Professionals"
        assert body["sheetsData"]["percentage"] == "14%"
        assert store.fetch_persona(body["persona"]["id"])["project_id"] == "proj-1"

    def test_import_unknown(self, client):
        response = client.post(f"{API}/sheets-import", json={"personaName": "nobody"})

        assert response.status_code == 404


class TestTemplateEndpoints:
    def test_list(self, client):
        body = client.get(f"{API}/query-templates").json()

        assert body["count"] == 9

    def test_render(self, client):
        response = client.post(
            f"{API}/query-templates/competitive_analysis/render",
            json={"variables": {"BRAND": "Honda"}},
        )

        assert response.status_code == 200
        assert "switch from their current preferred brands to Honda" in response.json()["query"]

    def test_render_missing_variable(self, client):
        response = client.post(
            f"{API}/query-templates/competitive_analysis/render",
            json={"variables": {}},
        )

        assert response.status_code == 400


class TestDiagnostics:
    def test_health(self, client):
        assert client.get(f"{API}/health").json()["status"] == "healthy"

    def test_readiness(self, client):
        assert client.get(f"{API}/health/ready").json()["status"] == "ready"

    def test_api_checks_never_fail(self, client):
        response = client.get(f"{API}/debug/test-apis")

        assert response.status_code == 200
        results = response.json()["results"]
        assert results["supabase"]["status"] == "ok"
        assert results["googleSheets"]["status"] == "error"
        assert results["openai"]["status"] == "ok"

    def test_db_check_without_supabase(self, client):
        app.dependency_overrides[get_optional_store] = lambda: None

        body = client.get(f"{API}/debug/test-db").json()

        assert body["success"] is False

    def test_webhook_check_with_malformed_url(self, client):
        app.dependency_overrides[get_notifier] = lambda: NotificationService("http://[::1")

        sent = client.post(f"{API}/n8n/test")
        checked = client.get(f"{API}/debug/test-apis")

        assert sent.status_code == 200
        assert sent.json()["success"] is False
        assert checked.status_code == 200
        assert checked.json()["results"]["n8n"]["status"] == "error"
