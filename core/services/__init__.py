# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .storage_service import StorageService
from .notification_service import NotificationService
from .persona_service import PersonaService, EnrichmentOutcome
from .conversation_service import ConversationService, ChatSession, SessionState
from .template_service import TemplateService, QUERY_TEMPLATES

__all__ = [
    "StorageService",
    "NotificationService",
    "PersonaService",
    "EnrichmentOutcome",
    "ConversationService",
    "ChatSession",
    "SessionState",
    "TemplateService",
    "QUERY_TEMPLATES",
]
