# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
# These are injected into route handlers using Depends().
#
# Integration clients are built once per process from settings. Tests swap
# them out with app.dependency_overrides.
# =============================================================================

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from app.config import settings
from app.exceptions import QuarterbackException
from core.services.conversation_service import ConversationService
from core.services.notification_service import NotificationService
from core.services.persona_service import PersonaService
from core.services.storage_service import StorageService
from core.services.template_service import TemplateService
from lib.completion_client import CompletionClient
from lib.sheets_client import GoogleSheetsClient
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


# =============================================================================
# Integration Clients
# =============================================================================

@lru_cache
def get_store() -> SupabaseClient:
    """
    Get the Supabase wrapper.

    Raises ConfigurationError (500) when Supabase credentials are missing.
    """
    return SupabaseClient.from_settings(settings)


def get_optional_store() -> SupabaseClient | None:
    """Supabase wrapper, or None when it cannot be built (diagnostics only)."""
    try:
        return get_store()
    except QuarterbackException as e:
        logger.warning(f"Supabase unavailable: {e.message}")
        return None


@lru_cache
def get_completion_client() -> CompletionClient:
    """Completion client for persona chat."""
    return CompletionClient.from_settings(settings)


@lru_cache
def get_enrichment_client() -> CompletionClient:
    """Completion client for enrichment (JSON-capable model)."""
    return CompletionClient.from_settings(settings, model=settings.ENRICHMENT_MODEL)


@lru_cache
def get_sheets_client() -> GoogleSheetsClient:
    return GoogleSheetsClient.from_settings(settings)


@lru_cache
def get_notifier() -> NotificationService:
    return NotificationService.from_settings(settings)


@lru_cache
def get_template_service() -> TemplateService:
    return TemplateService()


# Type aliases for dependency injection
StoreDep = Annotated[SupabaseClient, Depends(get_store)]
OptionalStoreDep = Annotated[SupabaseClient | None, Depends(get_optional_store)]
CompletionDep = Annotated[CompletionClient, Depends(get_completion_client)]
SheetsDep = Annotated[GoogleSheetsClient, Depends(get_sheets_client)]
NotifierDep = Annotated[NotificationService, Depends(get_notifier)]
TemplatesDep = Annotated[TemplateService, Depends(get_template_service)]


# =============================================================================
# Services
# =============================================================================

def get_storage_service(store: StoreDep) -> StorageService:
    return StorageService(store)


def get_persona_service(
    store: StoreDep,
    storage: Annotated[StorageService, Depends(get_storage_service)],
    completion: Annotated[CompletionClient, Depends(get_enrichment_client)],
    sheets: SheetsDep,
) -> PersonaService:
    return PersonaService(store, storage, completion, sheets)


def get_conversation_service(
    store: StoreDep,
    completion: Annotated[CompletionClient, Depends(get_completion_client)],
) -> ConversationService:
    return ConversationService(store, completion, history_limit=settings.CONTEXT_MESSAGE_LIMIT)


PersonaServiceDep = Annotated[PersonaService, Depends(get_persona_service)]
ConversationServiceDep = Annotated[ConversationService, Depends(get_conversation_service)]
