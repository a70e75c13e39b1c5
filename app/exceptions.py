# =============================================================================
# app/exceptions.py - Custom Exceptions and Handlers
# =============================================================================
# Centralized exception handling for the API.
# Errors should tell HOW to fix, not just WHAT failed.
#
# Taxonomy:
#   ValidationError     400  missing/malformed input
#   NotFoundError       404  persona/conversation/template absent
#   ConfigurationError  500  integration credential missing
#   UpstreamError       500  Supabase/OpenAI/Sheets call failed
#   NotificationError   --   webhook failure, logged only
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class QuarterbackException(Exception):
    """
    Base exception for the Quarterback API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "QUARTERBACK_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Input Exceptions
# =============================================================================

class ValidationError(QuarterbackException):
    """Raised when a required input is missing or malformed."""

    def __init__(self, field: str, message: str, suggestion: str | None = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            suggestion=suggestion,
            details={"field": field},
        )
        self.field = field


class InvalidFileTypeError(ValidationError):
    """Raised when uploaded file type is not allowed."""

    def __init__(self, filename: str, allowed: list[str]):
        super().__init__(
            field="file",
            message=f"Invalid file type: {filename}",
            suggestion=f"Only these file types are supported: {', '.join(allowed)}",
        )
        self.code = "INVALID_FILE_TYPE"
        self.details.update({"filename": filename, "allowed_types": allowed})


class FileTooLargeError(QuarterbackException):
    """Raised when uploaded file exceeds size limit."""

    def __init__(self, size_mb: float, max_mb: int):
        super().__init__(
            message=f"File too large: {size_mb:.1f}MB (max: {max_mb}MB)",
            code="FILE_TOO_LARGE",
            status_code=413,
            suggestion=f"Upload a file smaller than {max_mb}MB",
            details={"size_mb": size_mb, "max_mb": max_mb}
        )


# =============================================================================
# Lookup Exceptions
# =============================================================================

class NotFoundError(QuarterbackException):
    """Raised when a referenced record does not exist."""

    def __init__(self, kind: str, record_id: str, suggestion: str | None = None):
        super().__init__(
            message=f"{kind.capitalize()} not found: {record_id}",
            code=f"{kind.upper()}_NOT_FOUND",
            status_code=404,
            suggestion=suggestion or f"Check that the {kind} id is correct",
            details={f"{kind}_id": record_id},
        )


class PersonaNotFoundError(NotFoundError):
    """Raised when a persona ID doesn't exist."""

    def __init__(self, persona_id: str):
        super().__init__(
            "persona",
            persona_id,
            suggestion="Check that the persona id is correct and it hasn't been deleted",
        )


class ConversationNotFoundError(NotFoundError):
    """Raised when a conversation ID doesn't exist."""

    def __init__(self, conversation_id: str):
        super().__init__(
            "conversation",
            conversation_id,
            suggestion="Open a new conversation with POST /personas/{id}/conversations",
        )


class TemplateNotFoundError(NotFoundError):
    """Raised when a query template ID doesn't exist."""

    def __init__(self, template_id: str):
        super().__init__(
            "template",
            template_id,
            suggestion="List available templates with GET /query-templates",
        )


# =============================================================================
# Integration Exceptions
# =============================================================================

class ConfigurationError(QuarterbackException):
    """Raised when an integration is used without its credentials."""

    def __init__(self, integration: str, variable: str):
        super().__init__(
            message=f"{integration} is not configured ({variable} is missing)",
            code="CONFIGURATION_ERROR",
            status_code=500,
            suggestion=f"Set {variable} in the environment or .env file",
            details={"integration": integration, "variable": variable},
        )
        self.integration = integration


class UpstreamError(QuarterbackException):
    """Raised when a call to Supabase, OpenAI or Google Sheets fails."""

    def __init__(
        self,
        integration: str,
        error: str,
        status: int | None = None,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        merged = {"integration": integration, "error": error}
        if status is not None:
            merged["upstream_status"] = status
        if details:
            merged.update(details)
        super().__init__(
            message=f"{integration} request failed: {error}",
            code="UPSTREAM_ERROR",
            status_code=500,
            suggestion=suggestion or "Try again later or contact support if the issue persists",
            details=merged,
        )
        self.integration = integration
        self.upstream_status = status


class NotificationError(QuarterbackException):
    """Raised inside the notification service when a webhook fails. Never surfaced."""

    def __init__(self, event: str, error: str):
        super().__init__(
            message=f"Webhook delivery failed for {event}: {error}",
            code="NOTIFICATION_ERROR",
            details={"event": event, "error": error},
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def quarterback_exception_handler(
    request: Request,
    exc: QuarterbackException
) -> JSONResponse:
    """
    Convert QuarterbackException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def validation_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Handle request-body schema errors raised by FastAPI/pydantic."""
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Validation error",
            "code": "VALIDATION_ERROR",
            "errors": str(exc)
        }
    )
