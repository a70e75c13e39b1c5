# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides a typed wrapper for the Supabase tables and storage
# bucket Quarterback uses:
# - projects (read-only lookup of the owning client)
# - personas (create, read, update, cascade delete)
# - conversations and messages (append-only chat history)
# - csv-uploads bucket (original CSV files)
#
# One wrapper instance is built per process from settings (see
# app/dependencies.py) and passed into the services that need it, so tests
# can substitute an in-memory fake.
#
# Usage:
#   store = SupabaseClient.from_settings(settings)
#   messages = store.fetch_messages(conversation_id, limit=10)
# =============================================================================

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from supabase import create_client, Client

from app.config import Settings
from app.exceptions import ConfigurationError, UpstreamError

# Set up logging for this module
logger = logging.getLogger(__name__)

# Tables checked by the debug endpoint
KNOWN_TABLES = ("clients", "projects", "personas", "conversations", "messages")


class SupabaseClient:
    """
    Typed wrapper for Supabase database and storage operations.

    Every failed call is re-raised as UpstreamError carrying the
    database's own error text. Lookups by id return None when the row
    does not exist.

    Example:
        store = SupabaseClient.from_settings(settings)
        persona = store.fetch_persona("550e8400-...")
        history = store.fetch_messages(conversation_id, limit=10)
    """

    def __init__(self, client: Client, bucket: str = "csv-uploads"):
        self.client = client
        self.bucket = bucket

    @classmethod
    def from_settings(cls, settings: Settings) -> "SupabaseClient":
        """
        Build a wrapper from application settings.

        Uses the service_role key which bypasses Row Level Security (RLS).
        This is appropriate for server-side operations.

        Raises:
            ConfigurationError: If the URL or service key is missing
            UpstreamError: If client creation fails
        """
        if not settings.SUPABASE_URL:
            raise ConfigurationError("Supabase", "SUPABASE_URL")
        if not settings.SUPABASE_SERVICE_KEY:
            raise ConfigurationError("Supabase", "SUPABASE_SERVICE_KEY")

        try:
            client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY)
        except Exception as e:
            raise UpstreamError(
                "database",
                f"Failed to create Supabase client: {e}",
                suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file",
            )

        logger.info("Supabase client initialized successfully")
        return cls(client, bucket=settings.CSV_BUCKET)

    @staticmethod
    def _normalize_uuid(uuid_value: str | UUID) -> str:
        """Convert UUID to string for queries."""
        return str(uuid_value) if isinstance(uuid_value, UUID) else uuid_value

    def _fetch_one(self, table: str, record_id: str | UUID) -> dict[str, Any] | None:
        record_id_str = self._normalize_uuid(record_id)
        try:
            response = (
                self.client.table(table)
                .select("*")
                .eq("id", record_id_str)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise UpstreamError(
                "database",
                f"Failed to fetch from {table}: {e}",
                details={"table": table, "id": record_id_str},
            )

        rows = response.data or []
        return rows[0] if rows else None

    def _insert_one(self, table: str, data: dict[str, Any]) -> dict[str, Any]:
        try:
            response = self.client.table(table).insert(data).execute()
        except Exception as e:
            raise UpstreamError(
                "database",
                f"Failed to insert into {table}: {e}",
                details={"table": table},
            )

        if not response.data:
            raise UpstreamError(
                "database",
                f"Insert into {table} returned no data",
                details={"table": table},
            )
        return response.data[0]

    # -------------------------------------------------------------------------
    # Projects
    # -------------------------------------------------------------------------

    def fetch_project(self, project_id: str | UUID) -> dict[str, Any] | None:
        """Fetch a project row (id, client_id, name, ...) or None."""
        return self._fetch_one("projects", project_id)

    # -------------------------------------------------------------------------
    # Personas
    # -------------------------------------------------------------------------

    def fetch_persona(self, persona_id: str | UUID) -> dict[str, Any] | None:
        """
        Fetch a persona by ID.

        Returns:
            Persona dict with all fields, or None if not found

        Raises:
            UpstreamError: If the query fails
        """
        return self._fetch_one("personas", persona_id)

    def list_personas(
        self,
        project_id: str | UUID | None = None,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        """List personas, newest first, optionally for one project."""
        try:
            query = self.client.table("personas").select(
                "id, project_id, name, summary, demographics, created_at"
            )
            if project_id:
                query = query.eq("project_id", self._normalize_uuid(project_id))
            response = query.order("created_at", desc=True).limit(limit).execute()
        except Exception as e:
            raise UpstreamError("database", f"Failed to list personas: {e}")

        return response.data or []

    def insert_persona(self, data: dict[str, Any]) -> dict[str, Any]:
        """
        Insert a persona row.

        Args:
            data: Column values (project_id, name, raw_data, summary, ...)

        Returns:
            Inserted persona dict with generated id and created_at
        """
        persona = self._insert_one("personas", data)
        logger.info(f"Created persona: {persona.get('id')}")
        return persona

    def update_persona(
        self,
        persona_id: str | UUID,
        data: dict[str, Any],
    ) -> dict[str, Any] | None:
        """Update a persona; returns the updated row or None if it vanished."""
        persona_id_str = self._normalize_uuid(persona_id)
        try:
            response = (
                self.client.table("personas")
                .update(data)
                .eq("id", persona_id_str)
                .execute()
            )
        except Exception as e:
            raise UpstreamError(
                "database",
                f"Failed to update persona: {e}",
                details={"persona_id": persona_id_str},
            )

        rows = response.data or []
        if rows:
            logger.info(f"Updated persona: {persona_id_str}")
            return rows[0]
        return None

    def delete_persona(self, persona_id: str | UUID) -> int:
        """
        Delete a persona together with its conversations and messages.

        Children are removed first so no conversation or message can outlive
        its persona, whether or not the schema declares ON DELETE CASCADE.

        Returns:
            Number of persona rows deleted (0 if it did not exist)
        """
        persona_id_str = self._normalize_uuid(persona_id)

        try:
            conversations = (
                self.client.table("conversations")
                .select("id")
                .eq("persona_id", persona_id_str)
                .execute()
            )
            conversation_ids = [row["id"] for row in (conversations.data or [])]

            if conversation_ids:
                (
                    self.client.table("messages")
                    .delete()
                    .in_("conversation_id", conversation_ids)
                    .execute()
                )
                (
                    self.client.table("conversations")
                    .delete()
                    .eq("persona_id", persona_id_str)
                    .execute()
                )

            response = (
                self.client.table("personas")
                .delete()
                .eq("id", persona_id_str)
                .execute()
            )
        except Exception as e:
            raise UpstreamError(
                "database",
                f"Failed to delete persona: {e}",
                details={"persona_id": persona_id_str},
            )

        deleted = len(response.data or [])
        logger.info(
            f"Deleted persona {persona_id_str} "
            f"({len(conversation_ids)} conversations removed)"
        )
        return deleted

    # -------------------------------------------------------------------------
    # Conversations
    # -------------------------------------------------------------------------

    def insert_conversation(
        self,
        persona_id: str | UUID,
        title: str | None = None,
    ) -> dict[str, Any]:
        """Create a conversation row for a persona."""
        data: dict[str, Any] = {"persona_id": self._normalize_uuid(persona_id)}
        if title:
            data["title"] = title
        return self._insert_one("conversations", data)

    def fetch_conversation(self, conversation_id: str | UUID) -> dict[str, Any] | None:
        """Fetch a conversation by ID, or None."""
        return self._fetch_one("conversations", conversation_id)

    # -------------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------------

    def fetch_messages(
        self,
        conversation_id: str | UUID,
        limit: int = 10,
    ) -> list[dict[str, Any]]:
        """
        Fetch the most recent messages of a conversation.

        Queries newest-first so `limit` keeps the latest turns, then
        reverses so callers always receive chronological order.

        Args:
            conversation_id: The conversation UUID
            limit: Maximum number of messages to return (default: 10)

        Returns:
            List of message dicts (id, conversation_id, role, content,
            metadata, created_at), oldest first

        Raises:
            UpstreamError: If query fails
        """
        conversation_id_str = self._normalize_uuid(conversation_id)

        try:
            response = (
                self.client.table("messages")
                .select("id, conversation_id, role, content, metadata, created_at")
                .eq("conversation_id", conversation_id_str)
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )
        except Exception as e:
            raise UpstreamError(
                "database",
                f"Failed to fetch messages: {e}",
                details={"conversation_id": conversation_id_str, "limit": limit},
            )

        messages = list(reversed(response.data or []))
        logger.debug(f"Fetched {len(messages)} messages for conversation {conversation_id_str}")
        return messages

    def insert_message(
        self,
        conversation_id: str | UUID,
        role: str,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Append a message to a conversation.

        Returns:
            Inserted message dict with generated id and created_at
        """
        data = {
            "conversation_id": self._normalize_uuid(conversation_id),
            "role": role,
            "content": content,
            "metadata": metadata or {},
        }
        return self._insert_one("messages", data)

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------

    def upload_file(
        self,
        path: str,
        content: bytes,
        content_type: str = "text/csv",
    ) -> str:
        """Upload bytes to the CSV bucket; returns the storage path."""
        try:
            self.client.storage.from_(self.bucket).upload(
                path=path,
                file=content,
                file_options={"content-type": content_type},
            )
        except Exception as e:
            raise UpstreamError(
                "storage",
                f"Failed to upload file to storage: {e}",
                details={"bucket": self.bucket, "path": path},
            )

        logger.info(f"Uploaded file to storage: {self.bucket}/{path}")
        return path

    def remove_file(self, path: str) -> bool:
        """Remove a stored file. Returns False instead of raising."""
        try:
            self.client.storage.from_(self.bucket).remove([path])
        except Exception as e:
            logger.warning(f"Failed to delete stored file {path}: {e}")
            return False

        logger.info(f"Deleted file from storage: {path}")
        return True

    # -------------------------------------------------------------------------
    # Diagnostics
    # -------------------------------------------------------------------------

    def check_table(self, table: str) -> dict[str, Any]:
        """Check that a table is reachable. Never raises."""
        try:
            response = self.client.table(table).select("*").limit(1).execute()
        except Exception as e:
            return {"exists": False, "error": str(e), "count": 0}
        return {"exists": True, "error": None, "count": len(response.data or [])}

    def check_storage(self) -> dict[str, Any]:
        """Check that storage is reachable. Never raises."""
        try:
            self.client.storage.list_buckets()
        except Exception as e:
            return {"status": "error", "error": str(e)}
        return {"status": "ok", "error": None}
