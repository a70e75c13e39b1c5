# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - persona.py: Persona, fact records, enrichment results, sheet rows
# - conversation.py: Conversation, message and chat turn schemas
# - webhook.py: Lifecycle event payloads for the n8n webhook
# - templates.py: Marketing query templates
#
# These models define the "contract" between API and clients.
# =============================================================================

# -----------------------------------------------------------------------------
# Persona Models - Audience data and enrichment
# -----------------------------------------------------------------------------
from .persona import (
    Demographics,
    EnrichmentResult,
    FactRecord,
    Persona,
    SheetPersona,
)

# -----------------------------------------------------------------------------
# Conversation Models - Persona chat
# -----------------------------------------------------------------------------
from .conversation import (
    Conversation,
    ConversationQueryRequest,
    Message,
    MessageRole,
    OpenConversationRequest,
    QueryPersonaRequest,
    TurnResult,
)

# -----------------------------------------------------------------------------
# Webhook Models - Automation events
# -----------------------------------------------------------------------------
from .webhook import (
    WebhookData,
    WebhookEvent,
    WebhookPayload,
)

# -----------------------------------------------------------------------------
# Template Models - Canned marketing queries
# -----------------------------------------------------------------------------
from .templates import (
    QueryTemplate,
    TemplateCategory,
)

__all__ = [
    # Persona
    "Demographics",
    "EnrichmentResult",
    "FactRecord",
    "Persona",
    "SheetPersona",
    # Conversation
    "Conversation",
    "ConversationQueryRequest",
    "Message",
    "MessageRole",
    "OpenConversationRequest",
    "QueryPersonaRequest",
    "TurnResult",
    # Webhook
    "WebhookData",
    "WebhookEvent",
    "WebhookPayload",
    # Templates
    "QueryTemplate",
    "TemplateCategory",
]
