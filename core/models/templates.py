# =============================================================================
# core/models/templates.py - Query Template Schemas
# =============================================================================
# Canned marketing questions users can send to a persona. Templates may
# contain {VARIABLE} placeholders (e.g. {BRAND}) that must be filled in
# before the text is submitted as a chat query.
# =============================================================================

from enum import Enum

from pydantic import BaseModel, Field


class TemplateCategory(str, Enum):
    """Grouping used by the template picker."""
    CONTENT_ANALYSIS = "content_analysis"
    PURCHASE_BEHAVIOR = "purchase_behavior"
    CAMPAIGN_IDEAS = "campaign_ideas"
    CONTENT_AVOIDANCE = "content_avoidance"
    MEDIA_PLANNING = "media_planning"


class QueryTemplate(BaseModel):
    """A reusable question about an audience segment."""

    id: str
    category: TemplateCategory
    title: str
    description: str
    template: str
    variables: list[str] = Field(default_factory=list)
    priority: int = Field(default=1, ge=1)


class RenderTemplateRequest(BaseModel):
    """Body of POST /query-templates/{id}/render."""

    variables: dict[str, str] = Field(
        default_factory=dict,
        examples=[{"BRAND": "Honda", "RIGHTSHOLDER": "Brighton & Hove Albion"}],
    )
