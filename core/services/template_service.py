# =============================================================================
# core/services/template_service.py - Query Template Catalogue
# =============================================================================
# Static catalogue of marketing questions plus lookup and rendering.
# Rendering fills {VARIABLE} placeholders; every declared variable must be
# supplied so a half-filled question never reaches the model.
# =============================================================================

import logging

from app.exceptions import TemplateNotFoundError, ValidationError
from core.models.templates import QueryTemplate, TemplateCategory

logger = logging.getLogger(__name__)


QUERY_TEMPLATES: list[QueryTemplate] = [
    # Content analysis
    QueryTemplate(
        id="content_preferences_detailed",
        category=TemplateCategory.CONTENT_ANALYSIS,
        title="Content Preferences Deep Dive",
        description="Detailed analysis of content types this audience engages with",
        template=(
            "Please expand explicitly on the types of content this group like to consume, "
            "including specific formats, platforms, and content styles that drive the highest engagement."
        ),
        priority=1,
    ),
    QueryTemplate(
        id="content_dismissal",
        category=TemplateCategory.CONTENT_AVOIDANCE,
        title="Content Turn-offs & Avoidance",
        description="Content types that negatively impact brand perception",
        template=(
            "Please expand explicitly on the types of content this group are dismissive of, "
            "or do not like to engage with or consume. Include specific examples that would "
            "damage brand perception."
        ),
        priority=2,
    ),
    # Purchase behaviour
    QueryTemplate(
        id="purchase_motivators_automotive",
        category=TemplateCategory.PURCHASE_BEHAVIOR,
        title="Automotive Purchase Motivators",
        description="Key drivers for automotive purchasing decisions",
        template=(
            "Please expand explicitly on the purchasing motivators for automotive products for "
            "this group. Focus on endorsements, prestige, price sensitivity, technical "
            "specifications, early adoption appeal, environmental factors, and brand heritage importance."
        ),
        priority=1,
    ),
    QueryTemplate(
        id="purchase_motivators_general",
        category=TemplateCategory.PURCHASE_BEHAVIOR,
        title="General Purchase Motivators",
        description="Broader purchasing decision factors across categories",
        template=(
            "Please expand explicitly on the purchasing motivators for {PRODUCT_CATEGORY} for "
            "this group, including endorsements, prestige factors, price sensitivity, technical "
            "specifications, early adoption appeal, and other key decision drivers."
        ),
        variables=["PRODUCT_CATEGORY"],
        priority=2,
    ),
    # Campaign ideas
    QueryTemplate(
        id="campaign_ideas_custom",
        category=TemplateCategory.CAMPAIGN_IDEAS,
        title="Custom Brand Campaign Ideas",
        description="Tailored campaign concepts for specific brand partnerships",
        template=(
            "Please give specific content ideas for {BRAND} as part of their sponsorship of "
            "{RIGHTSHOLDER} to engage this audience group effectively on social media and drive "
            "affinity and interest in {BRAND} products. Consider the audience's content "
            "preferences and engagement triggers."
        ),
        variables=["BRAND", "RIGHTSHOLDER"],
        priority=1,
    ),
    QueryTemplate(
        id="influencer_recommendations",
        category=TemplateCategory.CAMPAIGN_IDEAS,
        title="Influencer & Partnership Recommendations",
        description="Key figures and partnerships that resonate with this audience",
        template=(
            "Based on this audience's influencer preferences and media consumption habits, "
            "recommend specific influencers, media personalities, or partnership opportunities "
            "that would be most effective for a {BRAND} x {RIGHTSHOLDER} campaign."
        ),
        variables=["BRAND", "RIGHTSHOLDER"],
        priority=3,
    ),
    # Media planning
    QueryTemplate(
        id="media_planning_custom",
        category=TemplateCategory.MEDIA_PLANNING,
        title="Custom Media Planning",
        description="Platform and format recommendations for specific brands",
        template=(
            "I'm creating a digital marketing campaign for {BRAND} as part of their "
            "{RIGHTSHOLDER} sponsorship. Tell me what ad formats, channels and content types this "
            "audience are most likely to engage with, including platform-specific recommendations."
        ),
        variables=["BRAND", "RIGHTSHOLDER"],
        priority=1,
    ),
    # Advanced analysis
    QueryTemplate(
        id="creative_tone_guidance",
        category=TemplateCategory.CONTENT_ANALYSIS,
        title="Creative Tone & Messaging Guidelines",
        description="Optimal tone of voice and messaging approach",
        template=(
            "Provide specific guidance on the optimal tone of voice, messaging style, and "
            "creative approach for reaching this audience. Include what language patterns work "
            "best and what to avoid."
        ),
        priority=3,
    ),
    QueryTemplate(
        id="competitive_analysis",
        category=TemplateCategory.PURCHASE_BEHAVIOR,
        title="Competitive Brand Preferences",
        description="Analysis of competitive brand preferences and switching triggers",
        template=(
            "Analyze this audience's relationship with brands competing with {BRAND}. What would "
            "motivate them to switch from their current preferred brands to {BRAND}? Include "
            "specific competitive advantages to emphasize."
        ),
        variables=["BRAND"],
        priority=3,
    ),
]


class TemplateService:
    """Lookup and rendering over the query template catalogue."""

    def __init__(self, templates: list[QueryTemplate] | None = None):
        self.templates = templates if templates is not None else QUERY_TEMPLATES

    def list_templates(self, category: TemplateCategory | None = None) -> list[QueryTemplate]:
        """Templates (optionally one category), ordered by priority then id."""
        selected = [
            t for t in self.templates
            if category is None or t.category == category
        ]
        return sorted(selected, key=lambda t: (t.priority, t.id))

    def get_template(self, template_id: str) -> QueryTemplate:
        for template in self.templates:
            if template.id == template_id:
                return template
        raise TemplateNotFoundError(template_id)

    def render_template(self, template_id: str, variables: dict[str, str] | None = None) -> str:
        """
        Fill a template's placeholders.

        Raises:
            TemplateNotFoundError: Unknown template id
            ValidationError: A declared variable has no non-blank value
        """
        template = self.get_template(template_id)
        values = {k: v.strip() for k, v in (variables or {}).items() if v and v.strip()}

        missing = [name for name in template.variables if name not in values]
        if missing:
            raise ValidationError(
                field=f"variables.{missing[0]}",
                message=f"Missing template variables: {', '.join(missing)}",
                suggestion=f"Provide values for: {', '.join(template.variables)}",
            )

        text = template.template
        for name in template.variables:
            text = text.replace("{" + name + "}", values[name])

        logger.debug(f"Rendered template {template_id}")
        return text
