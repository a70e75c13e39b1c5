# =============================================================================
# app/routers/personas.py - Persona Endpoints
# =============================================================================
# Create (CSV upload), list, fetch, enrich and delete personas, and open chat
# conversations against them. Webhook notifications are scheduled as
# background tasks and never change the response.
# =============================================================================

import logging
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Body, File, Form, Path, Query, UploadFile

from app.config import settings
from app.dependencies import ConversationServiceDep, NotifierDep, PersonaServiceDep
from core.models.conversation import OpenConversationRequest
from core.models.persona import Persona
from core.services.notification_service import NotificationService
from core.services.persona_service import PersonaService

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Background Notifications
# =============================================================================

def _send_persona_created(
    service: PersonaService,
    notifier: NotificationService,
    persona: Persona,
    file_name: str | None,
    file_size: int | None,
) -> None:
    delivered = notifier.notify_persona_created(
        persona_id=persona.id,
        project_id=persona.project_id,
        persona_name=persona.name,
        data_points=len(persona.raw_data),
        client_id=service.client_id_for(persona.project_id),
        file_name=file_name,
        file_size=file_size,
    )
    logger.info(f"persona_created webhook for {persona.id}: delivered={delivered}")


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/personas")
async def list_personas(
    service: PersonaServiceDep,
    project_id: Annotated[str | None, Query(description="Only personas of this project")] = None,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
):
    """List personas, newest first."""
    personas = service.list_personas(project_id, limit=limit)
    return {
        "personas": [p.to_response() for p in personas],
        "count": len(personas),
    }


@router.post("/personas", status_code=201)
async def create_persona(
    file: Annotated[UploadFile, File(description="CSV file of audience data")],
    service: PersonaServiceDep,
    notifier: NotifierDep,
    background_tasks: BackgroundTasks,
    project_id: Annotated[str | None, Form(description="Owning project")] = None,
):
    """
    Create a persona from a CSV upload.

    This endpoint:
    1. Validates the file (extension, size, parseable CSV)
    2. Stores the original in the csv-uploads bucket
    3. Inserts the persona with normalized raw data
    4. Schedules the persona_created webhook
    """
    content = await file.read()
    project = project_id or settings.DEFAULT_PROJECT_ID

    logger.info(f"Processing upload: {file.filename} ({len(content)} bytes) for project {project}")

    persona = service.create_from_csv(project, file.filename, content)

    background_tasks.add_task(
        _send_persona_created, service, notifier, persona, file.filename, len(content)
    )

    return {
        "success": True,
        "id": persona.id,
        "name": persona.name,
        "project_id": persona.project_id,
        "csv_file_path": persona.csv_file_path,
        "data_points": len(persona.raw_data),
    }


@router.get("/personas/{persona_id}")
async def get_persona(
    persona_id: Annotated[str, Path(description="Persona id")],
    service: PersonaServiceDep,
):
    """Fetch one persona with its raw and enriched data."""
    return service.get(persona_id).to_response()


@router.delete("/personas/{persona_id}")
async def delete_persona(
    persona_id: Annotated[str, Path(description="Persona id")],
    service: PersonaServiceDep,
):
    """Delete a persona together with its conversations and messages."""
    deleted = service.delete(persona_id)
    logger.info(f"Delete persona {persona_id}: {deleted} row(s) removed")
    return {"success": True, "message": "Persona deleted successfully"}


@router.post("/personas/{persona_id}/enrich")
async def enrich_persona(
    persona_id: Annotated[str, Path(description="Persona id")],
    service: PersonaServiceDep,
    notifier: NotifierDep,
    background_tasks: BackgroundTasks,
):
    """
    Enrich a persona with a model-generated profile.

    Writes name, enriched_data, summary and demographics back to the persona.
    """
    outcome = service.enrich(persona_id)
    enriched = outcome.enrichment.to_row()

    background_tasks.add_task(
        notifier.notify_persona_enriched,
        outcome.persona.id,
        outcome.persona.project_id,
        enriched,
        outcome.processing_time_ms,
    )

    return {
        "success": True,
        "persona_id": outcome.persona.id,
        "name": outcome.persona.name,
        "enrichedData": enriched,
        "processing_time_ms": outcome.processing_time_ms,
    }


@router.post("/personas/{persona_id}/conversations", status_code=201)
async def open_conversation(
    persona_id: Annotated[str, Path(description="Persona id")],
    service: ConversationServiceDep,
    request: Annotated[OpenConversationRequest | None, Body()] = None,
):
    """
    Open a chat conversation with a persona.

    Returns the persona's greeting for display; the greeting is not stored.
    """
    session = service.start(persona_id, title=request.title if request else None)
    return {
        "conversation_id": session.conversation_id,
        "persona_id": session.persona.id,
        "persona_name": session.persona.name,
        "title": session.conversation.title,
        "greeting": session.greeting,
    }
