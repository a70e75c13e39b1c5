# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - In-memory stand-ins for the Supabase wrapper and the completion client
# - Sample personas, CSVs and sheet rows
# =============================================================================

import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

import itertools
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from app.exceptions import UpstreamError


# =============================================================================
# Fakes
# =============================================================================

class InMemoryStore:
    """
    Dict-backed replacement for lib.supabase_client.SupabaseClient.

    Mirrors the wrapper's method signatures and ordering guarantees
    (messages come back oldest first, limited to the newest N).
    """

    def __init__(self, bucket: str = "csv-uploads"):
        self.bucket = bucket
        self.tables: dict[str, dict[str, dict[str, Any]]] = {
            "clients": {},
            "projects": {},
            "personas": {},
            "conversations": {},
            "messages": {},
        }
        self.files: dict[str, bytes] = {}
        self.fail_on: set[str] = set()
        self._clock = itertools.count()
        self._epoch = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise UpstreamError("database", f"simulated failure in {operation}")

    def _stamp(self) -> str:
        return (self._epoch + timedelta(seconds=next(self._clock))).isoformat()

    def _insert(self, table: str, data: dict[str, Any]) -> dict[str, Any]:
        row = {"id": str(uuid.uuid4()), "created_at": self._stamp(), **data}
        self.tables[table][row["id"]] = row
        return dict(row)

    # Lookups
    def fetch_project(self, project_id):
        self._check("fetch_project")
        return self.tables["projects"].get(str(project_id))

    # Personas
    def fetch_persona(self, persona_id):
        self._check("fetch_persona")
        row = self.tables["personas"].get(str(persona_id))
        return dict(row) if row else None

    def list_personas(self, project_id=None, limit=50):
        self._check("list_personas")
        rows = [
            dict(r) for r in self.tables["personas"].values()
            if project_id is None or r.get("project_id") == project_id
        ]
        rows.sort(key=lambda r: r["created_at"], reverse=True)
        return rows[:limit]

    def insert_persona(self, data):
        self._check("insert_persona")
        return self._insert("personas", data)

    def update_persona(self, persona_id, data):
        self._check("update_persona")
        row = self.tables["personas"].get(str(persona_id))
        if row is None:
            return None
        row.update(data)
        return dict(row)

    def delete_persona(self, persona_id):
        self._check("delete_persona")
        persona_id = str(persona_id)
        conversation_ids = [
            cid for cid, c in self.tables["conversations"].items()
            if c["persona_id"] == persona_id
        ]
        for mid in [
            mid for mid, m in self.tables["messages"].items()
            if m["conversation_id"] in conversation_ids
        ]:
            del self.tables["messages"][mid]
        for cid in conversation_ids:
            del self.tables["conversations"][cid]
        return 1 if self.tables["personas"].pop(persona_id, None) else 0

    # Conversations
    def insert_conversation(self, persona_id, title=None):
        self._check("insert_conversation")
        return self._insert("conversations", {"persona_id": str(persona_id), "title": title})

    def fetch_conversation(self, conversation_id):
        row = self.tables["conversations"].get(str(conversation_id))
        return dict(row) if row else None

    # Messages
    def fetch_messages(self, conversation_id, limit=10):
        self._check("fetch_messages")
        rows = [
            dict(m) for m in self.tables["messages"].values()
            if m["conversation_id"] == str(conversation_id)
        ]
        rows.sort(key=lambda m: m["created_at"], reverse=True)
        return list(reversed(rows[:limit]))

    def insert_message(self, conversation_id, role, content, metadata=None):
        self._check(f"insert_message:{role}")
        return self._insert(
            "messages",
            {
                "conversation_id": str(conversation_id),
                "role": role,
                "content": content,
                "metadata": metadata or {},
            },
        )

    # Storage
    def upload_file(self, path, content, content_type="text/csv"):
        self._check("upload_file")
        self.files[path] = content
        return path

    def remove_file(self, path):
        return self.files.pop(path, None) is not None

    # Diagnostics
    def check_table(self, table):
        return {"exists": table in self.tables, "error": None, "count": min(1, len(self.tables.get(table, {})))}

    def check_storage(self):
        return {"status": "ok", "error": None}

    # Helpers for assertions
    def messages_for(self, conversation_id) -> list[dict[str, Any]]:
        return self.fetch_messages(conversation_id, limit=10_000)


class FakeCompletion:
    """Records calls and returns canned replies instead of calling OpenAI."""

    def __init__(self, reply: str = "We read the Guardian.", json_reply: dict | None = None):
        self.reply = reply
        self.json_reply = json_reply if json_reply is not None else {}
        self.error: Exception | None = None
        self.calls: list[dict[str, str]] = []
        self.model = "fake-model"

    @property
    def is_configured(self) -> bool:
        return True

    def complete(self, system: str, user: str) -> str:
        self.calls.append({"system": system, "user": user})
        if self.error:
            raise self.error
        return self.reply

    def complete_json(self, system: str, user: str) -> dict:
        self.calls.append({"system": system, "user": user})
        if self.error:
            raise self.error
        return dict(self.json_reply)

    def check_connection(self) -> dict:
        return {"status": "ok", "error": None}


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def completion():
    return FakeCompletion()


@pytest.fixture
def sample_fact_rows():
    """Raw data rows in the stored (capitalised key) format."""
    return [
        {"Category": "Media Preferences", "Type": "Preference", "Value": "Guardian", "Source": "CSV Upload"},
        {"Category": "Media Preferences", "Type": "Preference", "Value": "Radio 4", "Source": "CSV Upload"},
        {"Category": "Social Media", "Type": "Preference", "Value": "LinkedIn", "Source": "CSV Upload"},
    ]


@pytest.fixture
def persona_row(store):
    """A persona with a single Guardian media preference."""
    return store.insert_persona({
        "project_id": "22222222-2222-2222-2222-222222222222",
        "name": "Informed Professionals",
        "raw_data": [
            {"Category": "Media Preferences", "Type": "Preference", "Value": "Guardian", "Source": "CSV Upload"},
        ],
        "summary": "Engaged Londoners",
        "demographics": {"percentage": "14%", "genderSplit": "75% Male", "devicePreference": "62% iOS"},
    })


@pytest.fixture
def sample_csv_bytes():
    return (
        b"Category,Type,Value,Source\n"
        b"Media Preferences,Preference,Guardian,Survey\n"
        b"Social Media,Preference,LinkedIn,Survey\n"
    )


@pytest.fixture
def sample_sheet_rows():
    """Value grid as returned by the Sheets API (title row, header row, data)."""
    return [
        ["WESTY Audience Example"],
        ["Audience", "Share", "Topics", "Social", "Media", "Influencers", "Brands",
         "Jobs", "Locations", "Bio", "YouTube", "Insights"],
        [
            "Weekend Cyclists 60% Male 55% iOS: Active commuters who ride at weekends",
            "9%",
            "Cycling, Fitness, Travel",
            "Strava, Instagram",
            "Cycling Weekly",
            "Chris Hoy",
            "Rapha, Brompton",
            "Engineer",
            "London, Bristol",
            "Cyclist",
            "GCN",
            "Health conscious, Outdoorsy",
        ],
        ["", "", ""],
    ]
