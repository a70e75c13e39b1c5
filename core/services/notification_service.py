# =============================================================================
# core/services/notification_service.py - Lifecycle Webhooks
# =============================================================================
# Posts persona lifecycle events to the configured n8n webhook.
#
# Webhooks are fire-and-forget: every method returns a bool and nothing here
# ever raises into the caller. Route handlers schedule these calls as
# background tasks so they run after the response has been sent.
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from app.config import Settings
from app.exceptions import NotificationError
from core.models.webhook import WebhookData, WebhookEvent, WebhookPayload

logger = logging.getLogger(__name__)

USER_AGENT = "Quarterback-Platform/1.0"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class NotificationService:
    """
    Sends webhook events.

    Example:
        notifier = NotificationService.from_settings(settings)
        notifier.notify_persona_created(persona_id, project_id, name="...")
    """

    def __init__(
        self,
        webhook_url: str | None,
        timeout: float = 10.0,
        http_client: httpx.Client | None = None,
    ):
        self.webhook_url = webhook_url or None
        self.timeout = timeout
        self._http = http_client

    @classmethod
    def from_settings(cls, settings: Settings) -> "NotificationService":
        return cls(settings.N8N_WEBHOOK_URL, timeout=settings.WEBHOOK_TIMEOUT_SECONDS)

    @property
    def is_configured(self) -> bool:
        return bool(self.webhook_url)

    def _post(self, body: dict[str, Any]) -> httpx.Response:
        headers = {"Content-Type": "application/json", "User-Agent": USER_AGENT}
        if self._http is not None:
            return self._http.post(self.webhook_url, json=body, headers=headers, timeout=self.timeout)
        return httpx.post(self.webhook_url, json=body, headers=headers, timeout=self.timeout)

    def _send(self, payload: WebhookPayload) -> None:
        event = payload.event.value
        try:
            response = self._post(payload.to_json())
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise NotificationError(event, str(e))

        if not response.is_success:
            raise NotificationError(
                event, f"{response.status_code} {response.reason_phrase}"
            )
        logger.info(f"Webhook {event} delivered ({response.status_code})")

    def notify(self, event: WebhookEvent, data: WebhookData | dict[str, Any]) -> bool:
        """
        Post one event.

        Returns:
            True if the webhook answered 2xx, False if it is not configured
            or delivery failed. Never raises.
        """
        if not self.webhook_url:
            logger.warning(f"Webhook URL not configured, skipping {event.value} event")
            return False

        if not isinstance(data, WebhookData):
            data = WebhookData.model_validate(data)
        payload = WebhookPayload(event=event, data=data)

        logger.info(f"Sending {event.value} event for persona {data.persona_id}")
        try:
            self._send(payload)
        except NotificationError as e:
            logger.error(e.message)
            return False
        return True

    # -------------------------------------------------------------------------
    # Typed Helpers
    # -------------------------------------------------------------------------

    def notify_persona_created(
        self,
        persona_id: str,
        project_id: str | None,
        persona_name: str,
        data_points: int,
        client_id: str | None = None,
        file_name: str | None = None,
        file_size: int | None = None,
        status: str = "created",
    ) -> bool:
        metadata: dict[str, Any] = {"uploadedAt": _now()}
        if file_name:
            metadata["fileName"] = file_name
        if file_size is not None:
            metadata["fileSize"] = file_size

        return self.notify(
            WebhookEvent.PERSONA_CREATED,
            {
                "personaId": persona_id,
                "projectId": project_id,
                "clientId": client_id,
                "personaName": persona_name,
                "rawDataPoints": data_points,
                "status": status,
                "metadata": metadata,
            },
        )

    def notify_persona_enriched(
        self,
        persona_id: str,
        project_id: str | None,
        enrichment: dict[str, Any],
        processing_time_ms: int,
    ) -> bool:
        return self.notify(
            WebhookEvent.PERSONA_ENRICHED,
            {
                "personaId": persona_id,
                "projectId": project_id,
                "enrichmentResults": {
                    key: enrichment[key]
                    for key in ("contentPreferences", "purchaseMotivators", "demographics")
                    if key in enrichment
                },
                "llmProvider": "openai",
                "processingTime": processing_time_ms,
                "metadata": {"enrichedAt": _now()},
            },
        )

    def notify_query_completed(
        self,
        persona_id: str,
        query: str,
        response: str,
        processing_time_ms: int,
        query_type: str = "custom",
    ) -> bool:
        return self.notify(
            WebhookEvent.QUERY_COMPLETED,
            {
                "personaId": persona_id,
                "queryType": query_type,
                "queryTemplate": query,
                "response": response,
                "responseLength": len(response),
                "metadata": {
                    "completedAt": _now(),
                    "processingTime": processing_time_ms,
                },
            },
        )

    def notify_report_generated(
        self,
        persona_id: str,
        project_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> bool:
        return self.notify(
            WebhookEvent.REPORT_GENERATED,
            {
                "personaId": persona_id,
                "projectId": project_id,
                "metadata": {"generatedAt": _now(), **(metadata or {})},
            },
        )

    def test_webhook(self) -> dict[str, Any]:
        """Send a test persona_created event and report the outcome."""
        if not self.webhook_url:
            return {"success": False, "message": "N8N webhook URL not configured"}

        success = self.notify(
            WebhookEvent.PERSONA_CREATED,
            {
                "personaId": "test-persona-id",
                "projectId": "test-project-id",
                "clientId": "test-client-id",
                "metadata": {
                    "test": True,
                    "message": "Quarterback webhook connectivity test",
                },
            },
        )
        return {
            "success": success,
            "message": "Webhook test successful" if success else "Webhook test failed",
        }
