# =============================================================================
# app/routers/templates.py - Query Template Endpoints
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Path, Query

from app.dependencies import TemplatesDep
from core.models.templates import RenderTemplateRequest, TemplateCategory

router = APIRouter()


@router.get("/query-templates")
async def list_templates(
    templates: TemplatesDep,
    category: Annotated[TemplateCategory | None, Query()] = None,
):
    """Canned marketing questions, ordered by priority."""
    selected = templates.list_templates(category)
    return {
        "templates": [t.model_dump(mode="json") for t in selected],
        "count": len(selected),
    }


@router.post("/query-templates/{template_id}/render")
async def render_template(
    template_id: Annotated[str, Path(description="Template id")],
    request: RenderTemplateRequest,
    templates: TemplatesDep,
):
    """Fill a template's {VARIABLE} placeholders and return the query text."""
    return {
        "template_id": template_id,
        "query": templates.render_template(template_id, request.variables),
    }
