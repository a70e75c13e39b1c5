# =============================================================================
# core/models/webhook.py - Webhook Payload Schemas
# =============================================================================
# Shape of the lifecycle events POSTed to the n8n automation webhook:
#
#   {
#     "event": "persona_created",
#     "timestamp": "2024-01-15T10:30:00+00:00",
#     "data": {"personaId": "...", "projectId": "...", "clientId": "...",
#              "metadata": {...}, ...event specific keys},
#     "source": "quarterback",
#     "version": "1.0"
#   }
# =============================================================================

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

WEBHOOK_SOURCE = "quarterback"
WEBHOOK_VERSION = "1.0"


class WebhookEvent(str, Enum):
    """Lifecycle events sent to the automation webhook."""
    PERSONA_CREATED = "persona_created"
    PERSONA_ENRICHED = "persona_enriched"
    QUERY_COMPLETED = "query_completed"
    REPORT_GENERATED = "report_generated"


class WebhookData(BaseModel):
    """The `data` block of a webhook payload. Event-specific keys are kept."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    persona_id: str | None = Field(default=None, alias="personaId")
    project_id: str | None = Field(default=None, alias="projectId")
    client_id: str | None = Field(default=None, alias="clientId")
    metadata: dict[str, Any] = Field(default_factory=dict)


class WebhookPayload(BaseModel):
    """Envelope POSTed to the webhook."""

    event: WebhookEvent
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    data: WebhookData
    source: str = WEBHOOK_SOURCE
    version: str = WEBHOOK_VERSION

    def to_json(self) -> dict[str, Any]:
        """Serialize with camelCase keys, dropping unset optional ids."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
