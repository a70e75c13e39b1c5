# =============================================================================
# core/services/conversation_service.py - Persona Chat Pipeline
# =============================================================================
# Runs one chat turn against a persona:
#
#   1. validate the query (nothing is stored for an empty query)
#   2. persist the user message
#   3. fetch the last N messages (oldest first) and build the persona context
#   4. ask the completion model
#   5. persist the reply as an assistant message
#
# A failure at step 4 propagates; the user message from step 2 stays stored
# and no reply is invented.
#
# Sessions:
#   ChatSession moves UNINITIALIZED -> ACTIVE once its conversation exists
#   and then stays ACTIVE. The greeting is for display only and never stored.
# =============================================================================

import logging
import time
from dataclasses import dataclass
from enum import Enum

from app.exceptions import ConversationNotFoundError, PersonaNotFoundError, ValidationError
from core.models.conversation import Conversation, Message, MessageRole, TurnResult
from core.models.persona import Persona
from lib.completion_client import CompletionClient
from lib.context import build_persona_context, greeting_for
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"


@dataclass
class ChatSession:
    """A persona plus the conversation its turns are appended to."""

    persona: Persona
    conversation: Conversation | None = None
    greeting: str | None = None
    state: SessionState = SessionState.UNINITIALIZED

    @property
    def conversation_id(self) -> str | None:
        return self.conversation.id if self.conversation else None

    def activate(self, conversation: Conversation) -> None:
        self.conversation = conversation
        self.state = SessionState.ACTIVE


class ConversationService:
    """
    Opens persona conversations and runs chat turns.

    Example:
        service = ConversationService(store, completion)
        session = service.start(persona_id)
        result = service.send(session, "What do you read?")
    """

    def __init__(
        self,
        store: SupabaseClient,
        completion: CompletionClient,
        history_limit: int = 10,
    ):
        self.store = store
        self.completion = completion
        self.history_limit = history_limit

    def _load_persona(self, persona_id: str) -> Persona:
        row = self.store.fetch_persona(persona_id)
        if row is None:
            raise PersonaNotFoundError(persona_id)
        return Persona.from_row(row)

    # -------------------------------------------------------------------------
    # Sessions
    # -------------------------------------------------------------------------

    def start(self, persona_id: str, title: str | None = None) -> ChatSession:
        """
        Open a new conversation for a persona.

        Raises:
            PersonaNotFoundError: Persona does not exist
        """
        persona = self._load_persona(persona_id)
        session = ChatSession(persona=persona)

        row = self.store.insert_conversation(persona.id, title or f"Chat with {persona.name}")
        session.activate(Conversation.from_row(row))
        session.greeting = greeting_for(persona)

        logger.info(f"Opened conversation {session.conversation_id} with persona {persona.id}")
        return session

    def resume(self, persona_id: str, conversation_id: str) -> ChatSession:
        """
        Rebuild a session for an existing conversation.

        Raises:
            PersonaNotFoundError: Persona does not exist
            ConversationNotFoundError: Conversation does not exist
            ValidationError: Conversation belongs to another persona
        """
        persona = self._load_persona(persona_id)

        row = self.store.fetch_conversation(conversation_id)
        if row is None:
            raise ConversationNotFoundError(conversation_id)

        conversation = Conversation.from_row(row)
        if conversation.persona_id != persona.id:
            raise ValidationError(
                field="conversationId",
                message=f"Conversation {conversation_id} does not belong to persona {persona_id}",
                suggestion="Open a new conversation for this persona",
            )

        session = ChatSession(persona=persona)
        session.activate(conversation)
        return session

    def open_or_resume(self, persona_id: str, conversation_id: str | None = None) -> ChatSession:
        if conversation_id:
            return self.resume(persona_id, conversation_id)
        return self.start(persona_id)

    # -------------------------------------------------------------------------
    # Turns
    # -------------------------------------------------------------------------

    def send(self, session: ChatSession, query: str | None) -> TurnResult:
        """
        Run one chat turn.

        Raises:
            ValidationError: Empty query or inactive session (nothing stored)
            ConfigurationError / UpstreamError: Model or database failure
        """
        if not query or not query.strip():
            raise ValidationError(
                field="query",
                message="Query must not be empty",
                suggestion="Type a question for the persona",
            )
        if session.state != SessionState.ACTIVE or session.conversation is None:
            raise ValidationError(
                field="conversationId",
                message="Conversation has not been opened",
                suggestion="Open a conversation with POST /personas/{id}/conversations",
            )

        started = time.perf_counter()
        conversation_id = session.conversation.id
        persona = session.persona

        user_row = self.store.insert_message(conversation_id, MessageRole.USER.value, query)

        history = [
            Message.from_row(row)
            for row in self.store.fetch_messages(conversation_id, limit=self.history_limit)
        ]
        context = build_persona_context(persona, history)

        reply = self.completion.complete(system=context, user=query)

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        assistant_row = self.store.insert_message(
            conversation_id,
            MessageRole.ASSISTANT.value,
            reply,
            metadata={"processing_time_ms": elapsed_ms},
        )

        logger.info(
            f"Persona {persona.id} answered in conversation {conversation_id} ({elapsed_ms}ms)"
        )

        return TurnResult(
            conversation_id=conversation_id,
            persona_id=persona.id,
            persona_name=persona.name,
            query=query,
            response=reply,
            user_message_id=_row_id(user_row),
            assistant_message_id=_row_id(assistant_row),
            processing_time_ms=elapsed_ms,
        )

    def messages(self, conversation_id: str, limit: int = 100) -> list[Message]:
        """
        Stored transcript, oldest first.

        Raises:
            ConversationNotFoundError: Conversation does not exist
        """
        if self.store.fetch_conversation(conversation_id) is None:
            raise ConversationNotFoundError(conversation_id)
        return [Message.from_row(row) for row in self.store.fetch_messages(conversation_id, limit=limit)]


def _row_id(row: dict) -> str | None:
    return str(row["id"]) if row.get("id") is not None else None
