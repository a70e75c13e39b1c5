# =============================================================================
# core/models/conversation.py - Conversation & Message Schemas
# =============================================================================
# These models define the contract for persona chat:
# - Conversation: one chat session against one persona
# - Message: an append-only turn inside a conversation
# - QueryPersonaRequest / ConversationQueryRequest: chat turn inputs
# - TurnResult: what a completed turn returns
#
# Flow:
# 1. Client opens a conversation for a persona (greeting is UI-only)
# 2. Each query persists a user message, asks the model, persists the reply
# =============================================================================

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MessageRole(str, Enum):
    """
    Who wrote a message.

    - user: The human asking questions
    - assistant: The persona's generated reply
    - system: Reserved for injected instructions
    """
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


def _parse_timestamp(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except (ValueError, TypeError):
        return None


class Message(BaseModel):
    """A persisted chat message."""

    id: str | None = None
    conversation_id: str
    role: MessageRole
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Message":
        """Create Message from a database row."""
        return cls(
            id=str(row["id"]) if row.get("id") is not None else None,
            conversation_id=str(row.get("conversation_id", "")),
            role=MessageRole(row.get("role", "user")),
            content=row.get("content") or "",
            metadata=row.get("metadata") or {},
            created_at=_parse_timestamp(row.get("created_at")),
        )

    def to_response(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role.value,
            "content": self.content,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class Conversation(BaseModel):
    """A chat session scoped to exactly one persona."""

    id: str
    persona_id: str
    title: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Conversation":
        """Create Conversation from a database row."""
        return cls(
            id=str(row["id"]),
            persona_id=str(row.get("persona_id", "")),
            title=row.get("title"),
            created_at=_parse_timestamp(row.get("created_at")),
        )


class QueryPersonaRequest(BaseModel):
    """
    Body of POST /query-persona.

    Fields are optional at the schema level so that missing values are
    reported as a 400 with the field name rather than a generic 422.

    Example:
        {"personaId": "3f2c...", "conversationId": "9a1b...", "query": "What do you read?"}
    """

    model_config = ConfigDict(populate_by_name=True)

    persona_id: str | None = Field(default=None, alias="personaId")
    conversation_id: str | None = Field(default=None, alias="conversationId")
    query: str | None = None


class ConversationQueryRequest(BaseModel):
    """Body of POST /conversations/{id}/query."""

    model_config = ConfigDict(populate_by_name=True)

    persona_id: str | None = Field(default=None, alias="personaId")
    query: str | None = None


class OpenConversationRequest(BaseModel):
    """Optional body of POST /personas/{id}/conversations."""

    title: str | None = Field(default=None, max_length=255)


class TurnResult(BaseModel):
    """Outcome of one completed chat turn."""

    conversation_id: str
    persona_id: str
    persona_name: str
    query: str
    response: str
    user_message_id: str | None = None
    assistant_message_id: str | None = None
    processing_time_ms: int = 0
