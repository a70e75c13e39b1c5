# =============================================================================
# app/routers/conversations.py - Persona Chat Endpoints
# =============================================================================
# One chat turn = one POST. The user message and the persona's reply are
# both stored; the query_completed webhook runs after the response.
# =============================================================================

import logging
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Path, Query

from app.dependencies import ConversationServiceDep, NotifierDep
from app.exceptions import ValidationError
from core.models.conversation import ConversationQueryRequest, QueryPersonaRequest, TurnResult

logger = logging.getLogger(__name__)

router = APIRouter()


def _require(value: str | None, field: str) -> str:
    if not value or not value.strip():
        raise ValidationError(
            field=field,
            message="Missing required fields: personaId and query",
            suggestion=f"Include '{field}' in the request body",
        )
    return value


def _turn_response(result: TurnResult) -> dict:
    return {
        "success": True,
        "response": result.response,
        "personaName": result.persona_name,
        "personaId": result.persona_id,
        "conversationId": result.conversation_id,
        "userMessageId": result.user_message_id,
        "assistantMessageId": result.assistant_message_id,
        "processingTimeMs": result.processing_time_ms,
    }


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/conversations/{conversation_id}/messages")
async def list_messages(
    conversation_id: Annotated[str, Path(description="Conversation id")],
    service: ConversationServiceDep,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
):
    """Stored transcript of a conversation, oldest first."""
    messages = service.messages(conversation_id, limit=limit)
    return {
        "conversation_id": conversation_id,
        "messages": [m.to_response() for m in messages],
        "count": len(messages),
    }


@router.post("/conversations/{conversation_id}/query")
async def query_conversation(
    conversation_id: Annotated[str, Path(description="Conversation id")],
    request: ConversationQueryRequest,
    service: ConversationServiceDep,
    notifier: NotifierDep,
    background_tasks: BackgroundTasks,
):
    """Ask the persona one question inside an existing conversation."""
    persona_id = _require(request.persona_id, "personaId")
    query = _require(request.query, "query")

    session = service.resume(persona_id, conversation_id)
    result = service.send(session, query)

    background_tasks.add_task(
        notifier.notify_query_completed,
        result.persona_id,
        result.query,
        result.response,
        result.processing_time_ms,
    )
    return _turn_response(result)


@router.post("/query-persona")
async def query_persona(
    request: QueryPersonaRequest,
    service: ConversationServiceDep,
    notifier: NotifierDep,
    background_tasks: BackgroundTasks,
):
    """
    Ask a persona one question.

    Without a conversationId a new conversation is opened first and its id
    is returned so the client can continue it.
    """
    persona_id = _require(request.persona_id, "personaId")
    query = _require(request.query, "query")

    logger.info(f"Query persona {persona_id} (conversation: {request.conversation_id})")

    session = service.open_or_resume(persona_id, request.conversation_id)
    result = service.send(session, query)

    background_tasks.add_task(
        notifier.notify_query_completed,
        result.persona_id,
        result.query,
        result.response,
        result.processing_time_ms,
    )
    return _turn_response(result)
