# =============================================================================
# app/routers/sheets.py - Google Sheets Import
# =============================================================================
# GET lists the audiences available in the persona spreadsheet (or the
# built-in example when the sheet cannot be read). POST imports one of them
# as a persona.
# =============================================================================

import logging
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Query
from pydantic import BaseModel, ConfigDict, Field

from app.dependencies import NotifierDep, PersonaServiceDep, SheetsDep
from core.services.persona_service import list_sheet_personas

logger = logging.getLogger(__name__)

router = APIRouter()


class SheetsImportRequest(BaseModel):
    """Body of POST /sheets-import."""

    model_config = ConfigDict(populate_by_name=True)

    persona_name: str | None = Field(
        default=None,
        alias="personaName",
        description="Case-insensitive substring of the audience name",
    )
    project_id: str | None = Field(default=None, alias="projectId")


@router.get("/sheets-import")
async def list_sheet_audiences(
    sheets: SheetsDep,
    test: Annotated[str | None, Query(description="Any value tests the Sheets connection")] = None,
):
    """List spreadsheet audiences with per-category counts."""
    if test:
        return sheets.test_connection()

    return {"success": True, **list_sheet_personas(sheets)}


@router.post("/sheets-import", status_code=201)
async def import_sheet_persona(
    request: SheetsImportRequest,
    service: PersonaServiceDep,
    notifier: NotifierDep,
    background_tasks: BackgroundTasks,
):
    """Import the first spreadsheet audience whose name matches."""
    logger.info(f"Importing from Google Sheets: {request.persona_name} -> {request.project_id}")

    persona, sheet_persona = service.import_from_sheets(request.persona_name, request.project_id)

    background_tasks.add_task(
        notifier.notify_persona_created,
        persona_id=persona.id,
        project_id=persona.project_id,
        persona_name=persona.name,
        data_points=len(persona.raw_data),
        file_name="google_sheets_import",
    )

    return {
        "success": True,
        "persona": {
            "id": persona.id,
            "name": persona.name,
            "dataPoints": len(persona.raw_data),
            "summary": persona.summary,
            "demographics": persona.demographics.to_row() if persona.demographics else None,
        },
        "sheetsData": {
            "audienceName": sheet_persona.audience_name,
            "percentage": sheet_persona.percentage,
        },
    }
