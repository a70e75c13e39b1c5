# =============================================================================
# core/services/persona_service.py - Persona Lifecycle
# =============================================================================
# Creates personas from CSV uploads and spreadsheet rows, enriches them with
# the completion model, and deletes them together with their chat history.
#
# Collaborators are passed in (see app/dependencies.py):
#   store       - SupabaseClient (tables)
#   storage     - StorageService (csv-uploads bucket)
#   completion  - CompletionClient for enrichment (JSON mode)
#   sheets      - GoogleSheetsClient
# =============================================================================

import logging
import time
from dataclasses import dataclass
from typing import Any

from app.config import settings
from app.exceptions import NotFoundError, PersonaNotFoundError, UpstreamError
from core.models.persona import EnrichmentResult, Persona, SheetPersona
from core.services.storage_service import StorageService
from lib.completion_client import CompletionClient
from lib.context import ENRICHMENT_SYSTEM_PROMPT, build_enrichment_prompt
from lib.normalizer import category_counts, normalize_csv, sheet_persona_to_facts
from lib.sheets_client import GoogleSheetsClient
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


def list_sheet_personas(sheets: GoogleSheetsClient) -> dict[str, Any]:
    """
    Available sheet personas with per-category counts.

    Needs only the sheets client, so the listing works before the database
    is configured.
    """
    personas = sheets.get_persona_data()
    return {
        "available_personas": [
            {
                "name": p.audience_name,
                "percentage": p.percentage,
                "summary": p.summary,
                "dataPoints": category_counts(p),
            }
            for p in personas
        ],
        "sheets_configured": sheets.is_configured,
    }


@dataclass
class EnrichmentOutcome:
    """Result of one enrichment run."""
    persona: Persona
    enrichment: EnrichmentResult
    processing_time_ms: int


class PersonaService:
    """
    Persona create / read / enrich / delete.

    Example:
        service = PersonaService(store, storage, completion, sheets)
        persona = service.create_from_csv(project_id, "audience.csv", content)
        outcome = service.enrich(persona.id)
    """

    def __init__(
        self,
        store: SupabaseClient,
        storage: StorageService,
        completion: CompletionClient,
        sheets: GoogleSheetsClient,
    ):
        self.store = store
        self.storage = storage
        self.completion = completion
        self.sheets = sheets

    # -------------------------------------------------------------------------
    # Create
    # -------------------------------------------------------------------------

    def create_from_csv(self, project_id: str, filename: str | None, content: bytes) -> Persona:
        """
        Create a persona from an uploaded CSV.

        The file is validated and parsed before anything is stored, then the
        original is uploaded and the persona row inserted.

        Raises:
            ValidationError / InvalidFileTypeError / FileTooLargeError: Bad upload
            UpstreamError: Storage or database failure
        """
        filename = self.storage.validate_upload(filename, content)
        facts = normalize_csv(content)

        path = self.storage.upload_csv_original(project_id, filename, content)

        row = self.store.insert_persona({
            "project_id": project_id,
            "name": f"Persona from {filename}",
            "csv_file_path": path,
            "raw_data": [fact.to_row() for fact in facts],
            "summary": "Processing persona data...",
        })

        persona = Persona.from_row(row)
        logger.info(f"Created persona {persona.id} from {filename} ({len(facts)} data points)")
        return persona

    def import_from_sheets(self, persona_name: str | None, project_id: str | None = None) -> tuple[Persona, SheetPersona]:
        """
        Import the first sheet persona whose name contains `persona_name`.

        Raises:
            NotFoundError: No sheet persona matches
            UpstreamError: Database failure
        """
        matches = self.sheets.get_persona_data(persona_name)
        if not matches:
            raise NotFoundError(
                "sheet_persona",
                persona_name or "",
                suggestion="List available personas with GET /sheets-import",
            )

        sheet_persona = matches[0]
        facts = sheet_persona_to_facts(sheet_persona)

        row = self.store.insert_persona({
            "project_id": project_id or settings.DEFAULT_PROJECT_ID,
            "name": sheet_persona.audience_name,
            "raw_data": [fact.to_row() for fact in facts],
            "summary": sheet_persona.summary,
            "demographics": sheet_persona.demographics().to_row(),
        })

        persona = Persona.from_row(row)
        logger.info(
            f"Imported sheet persona '{sheet_persona.audience_name}' as {persona.id} "
            f"({len(facts)} data points)"
        )
        return persona, sheet_persona

    # -------------------------------------------------------------------------
    # Read
    # -------------------------------------------------------------------------

    def get(self, persona_id: str) -> Persona:
        row = self.store.fetch_persona(persona_id)
        if row is None:
            raise PersonaNotFoundError(persona_id)
        return Persona.from_row(row)

    def list_personas(self, project_id: str | None = None, limit: int = 50) -> list[Persona]:
        return [Persona.from_row(row) for row in self.store.list_personas(project_id, limit=limit)]

    def client_id_for(self, project_id: str | None) -> str | None:
        """Owning client of a project, for webhook payloads. None if unknown."""
        if not project_id:
            return None
        try:
            project = self.store.fetch_project(project_id)
        except UpstreamError as e:
            logger.warning(f"Could not resolve client for project {project_id}: {e.message}")
            return None
        if not project or not project.get("client_id"):
            return None
        return str(project["client_id"])

    # -------------------------------------------------------------------------
    # Enrich
    # -------------------------------------------------------------------------

    def enrich(self, persona_id: str) -> EnrichmentOutcome:
        """
        Ask the enrichment model for a structured profile and store it.

        An empty raw_data is still sent; the prompt then lists `[]`.

        Raises:
            PersonaNotFoundError: Persona absent (checked before the model call)
            ConfigurationError / UpstreamError: Model or database failure
        """
        persona = self.get(persona_id)
        started = time.perf_counter()

        prompt = build_enrichment_prompt(persona.raw_data)
        raw = self.completion.complete_json(ENRICHMENT_SYSTEM_PROMPT, prompt)
        enrichment = EnrichmentResult.model_validate(raw)

        update = {
            "name": enrichment.name_text() or persona.name,
            "enriched_data": raw,
            "summary": enrichment.summary_text(),
            "demographics": enrichment.demographics_map(),
        }

        row = self.store.update_persona(persona_id, update)
        if row is None:
            raise PersonaNotFoundError(persona_id)

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        logger.info(f"Enriched persona {persona_id} in {elapsed_ms}ms")

        return EnrichmentOutcome(
            persona=Persona.from_row(row),
            enrichment=enrichment,
            processing_time_ms=elapsed_ms,
        )

    # -------------------------------------------------------------------------
    # Delete
    # -------------------------------------------------------------------------

    def delete(self, persona_id: str) -> int:
        """
        Delete a persona, its conversations and their messages.

        The stored CSV original is removed afterwards on a best-effort basis.

        Returns:
            Number of persona rows deleted (0 when it did not exist)

        Raises:
            UpstreamError: Database failure
        """
        row = self.store.fetch_persona(persona_id)
        deleted = self.store.delete_persona(persona_id)

        if row and row.get("csv_file_path"):
            self.storage.remove(row["csv_file_path"])

        return deleted
