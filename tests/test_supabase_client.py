# =============================================================================
# tests/test_supabase_client.py - Supabase Wrapper Tests
# =============================================================================
# This module contains tests for:
# - Lookups by id (row or None)
# - Cascade delete order (messages -> conversations -> persona)
# - Recent-message window (queried newest first, returned oldest first)
# - Error mapping to UpstreamError
# - Storage helpers and diagnostics
#
# The supabase-py client is a MagicMock whose query builder returns itself,
# so every chained call lands on the same object and can be asserted.
# =============================================================================

from unittest.mock import MagicMock, call

import pytest

from app.config import settings
from app.exceptions import ConfigurationError, UpstreamError
from lib.supabase_client import SupabaseClient

BUILDER_METHODS = ("select", "eq", "in_", "order", "limit", "insert", "update", "delete")


def _result(data):
    return MagicMock(data=data)


@pytest.fixture
def builder():
    mock = MagicMock()
    for name in BUILDER_METHODS:
        getattr(mock, name).return_value = mock
    mock.execute.return_value = _result([])
    return mock


@pytest.fixture
def client(builder):
    mock = MagicMock()
    mock.table.return_value = builder
    return mock


@pytest.fixture
def store(client):
    return SupabaseClient(client, bucket="csv-uploads")


# =============================================================================
# Lookups
# =============================================================================

class TestFetchOne:
    """Test single-row lookups."""

    def test_returns_first_row(self, store, client, builder):
        builder.execute.return_value = _result([{"id": "p-1", "name": "Cyclists"}])

        row = store.fetch_persona("p-1")

        assert row == {"id": "p-1", "name": "Cyclists"}
        client.table.assert_called_once_with("personas")
        builder.eq.assert_called_once_with("id", "p-1")
        builder.limit.assert_called_once_with(1)

    def test_missing_row_is_none(self, store):
        assert store.fetch_persona("missing") is None
        assert store.fetch_conversation("missing") is None
        assert store.fetch_project("missing") is None

    def test_error_maps_to_upstream(self, store, builder):
        builder.execute.side_effect = RuntimeError("relation does not exist")

        with pytest.raises(UpstreamError) as exc_info:
            store.fetch_project("proj-1")

        error = exc_info.value
        assert error.integration == "database"
        assert error.details["table"] == "projects"
        assert error.details["id"] == "proj-1"
        assert "relation does not exist" in error.message


class TestInsert:
    """Test row inserts."""

    def test_returns_inserted_row(self, store, builder):
        builder.execute.return_value = _result([{"id": "c-1", "persona_id": "p-1"}])

        row = store.insert_conversation("p-1", title="Chat")

        assert row["id"] == "c-1"
        builder.insert.assert_called_once_with({"persona_id": "p-1", "title": "Chat"})

    def test_message_metadata_defaults_to_empty(self, store, builder):
        builder.execute.return_value = _result([{"id": "m-1"}])

        store.insert_message("c-1", "user", "Hi")

        builder.insert.assert_called_once_with(
            {"conversation_id": "c-1", "role": "user", "content": "Hi", "metadata": {}}
        )

    def test_no_data_returned_raises(self, store):
        with pytest.raises(UpstreamError) as exc_info:
            store.insert_persona({"name": "Cyclists"})

        assert exc_info.value.details["table"] == "personas"
        assert "returned no data" in exc_info.value.message


# =============================================================================
# Personas
# =============================================================================

class TestPersonas:
    """Test persona listing, update and cascade delete."""

    def test_list_filters_by_project_newest_first(self, store, builder):
        store.list_personas("proj-1", limit=5)

        builder.eq.assert_called_once_with("project_id", "proj-1")
        builder.order.assert_called_once_with("created_at", desc=True)
        builder.limit.assert_called_once_with(5)

    def test_list_without_project_has_no_filter(self, store, builder):
        store.list_personas()

        builder.eq.assert_not_called()

    def test_update_missing_persona_is_none(self, store):
        assert store.update_persona("missing", {"name": "x"}) is None

    def test_delete_removes_messages_then_conversations_then_persona(self, store, client, builder):
        builder.execute.side_effect = [
            _result([{"id": "c-1"}, {"id": "c-2"}]),
            _result([{"id": "m-1"}]),
            _result([{"id": "c-1"}, {"id": "c-2"}]),
            _result([{"id": "p-1"}]),
        ]

        deleted = store.delete_persona("p-1")

        assert deleted == 1
        assert client.table.call_args_list == [
            call("conversations"),
            call("messages"),
            call("conversations"),
            call("personas"),
        ]
        builder.in_.assert_called_once_with("conversation_id", ["c-1", "c-2"])
        assert builder.delete.call_count == 3

    def test_delete_without_conversations_skips_children(self, store, client, builder):
        builder.execute.side_effect = [_result([]), _result([{"id": "p-1"}])]

        assert store.delete_persona("p-1") == 1
        assert client.table.call_args_list == [call("conversations"), call("personas")]
        builder.in_.assert_not_called()

    def test_delete_missing_persona_returns_zero(self, store):
        assert store.delete_persona("missing") == 0

    def test_delete_error_maps_to_upstream(self, store, builder):
        builder.execute.side_effect = RuntimeError("timeout")

        with pytest.raises(UpstreamError) as exc_info:
            store.delete_persona("p-1")

        assert exc_info.value.details["persona_id"] == "p-1"


# =============================================================================
# Messages
# =============================================================================

class TestFetchMessages:
    """Test the recent-message window."""

    def test_newest_first_query_returned_oldest_first(self, store, builder):
        builder.execute.return_value = _result([
            {"id": "m-3", "content": "third"},
            {"id": "m-2", "content": "second"},
            {"id": "m-1", "content": "first"},
        ])

        messages = store.fetch_messages("c-1", limit=10)

        assert [m["content"] for m in messages] == ["first", "second", "third"]
        builder.eq.assert_called_once_with("conversation_id", "c-1")
        builder.order.assert_called_once_with("created_at", desc=True)
        builder.limit.assert_called_once_with(10)

    def test_empty_conversation(self, store):
        assert store.fetch_messages("c-1") == []

    def test_error_carries_conversation_and_limit(self, store, builder):
        builder.execute.side_effect = RuntimeError("boom")

        with pytest.raises(UpstreamError) as exc_info:
            store.fetch_messages("c-1", limit=4)

        assert exc_info.value.details["conversation_id"] == "c-1"
        assert exc_info.value.details["limit"] == 4


# =============================================================================
# Storage & Diagnostics
# =============================================================================

class TestStorage:
    """Test the CSV bucket helpers."""

    def test_upload_uses_bucket_and_content_type(self, store, client):
        path = store.upload_file("proj-1/1-audience.csv", b"a,b\n")

        assert path == "proj-1/1-audience.csv"
        client.storage.from_.assert_called_once_with("csv-uploads")
        client.storage.from_.return_value.upload.assert_called_once_with(
            path="proj-1/1-audience.csv",
            file=b"a,b\n",
            file_options={"content-type": "text/csv"},
        )

    def test_upload_error_is_storage_failure(self, store, client):
        client.storage.from_.return_value.upload.side_effect = RuntimeError("Bucket not found")

        with pytest.raises(UpstreamError) as exc_info:
            store.upload_file("proj-1/x.csv", b"")

        assert exc_info.value.integration == "storage"
        assert exc_info.value.details["bucket"] == "csv-uploads"

    def test_remove_failure_returns_false(self, store, client):
        client.storage.from_.return_value.remove.side_effect = RuntimeError("gone")

        assert store.remove_file("proj-1/x.csv") is False

    def test_remove_success(self, store, client):
        assert store.remove_file("proj-1/x.csv") is True
        client.storage.from_.return_value.remove.assert_called_once_with(["proj-1/x.csv"])


class TestDiagnostics:
    def test_check_table_reports_error_without_raising(self, store, builder):
        builder.execute.side_effect = RuntimeError("permission denied")

        assert store.check_table("clients") == {
            "exists": False,
            "error": "permission denied",
            "count": 0,
        }

    def test_check_table_ok(self, store, builder):
        builder.execute.return_value = _result([{"id": "x"}])

        assert store.check_table("clients") == {"exists": True, "error": None, "count": 1}

    def test_check_storage_reports_error(self, store, client):
        client.storage.list_buckets.side_effect = RuntimeError("unauthorized")

        assert store.check_storage() == {"status": "error", "error": "unauthorized"}


# =============================================================================
# Construction
# =============================================================================

class TestFromSettings:
    """Test building the wrapper from settings."""

    def test_missing_url(self):
        with pytest.raises(ConfigurationError) as exc_info:
            SupabaseClient.from_settings(settings.model_copy(update={"SUPABASE_URL": ""}))

        assert exc_info.value.details["variable"] == "SUPABASE_URL"

    def test_missing_service_key(self):
        with pytest.raises(ConfigurationError) as exc_info:
            SupabaseClient.from_settings(settings.model_copy(update={"SUPABASE_SERVICE_KEY": ""}))

        assert exc_info.value.details["variable"] == "SUPABASE_SERVICE_KEY"

    def test_client_creation_failure(self, monkeypatch):
        def fail(url, key):
            raise RuntimeError("Invalid API key")

        monkeypatch.setattr("lib.supabase_client.create_client", fail)
        configured = settings.model_copy(
            update={"SUPABASE_URL": "https://db.example.supabase.co", "SUPABASE_SERVICE_KEY": "key"}
        )

        with pytest.raises(UpstreamError) as exc_info:
            SupabaseClient.from_settings(configured)

        assert exc_info.value.integration == "database"

    def test_uses_configured_bucket(self, monkeypatch):
        created = MagicMock()
        monkeypatch.setattr("lib.supabase_client.create_client", lambda url, key: created)
        configured = settings.model_copy(
            update={
                "SUPABASE_URL": "https://db.example.supabase.co",
                "SUPABASE_SERVICE_KEY": "key",
                "CSV_BUCKET": "uploads",
            }
        )

        store = SupabaseClient.from_settings(configured)

        assert store.client is created
        assert store.bucket == "uploads"
