# =============================================================================
# app/routers/debug.py - Integration Diagnostics
# =============================================================================
# Ad-hoc endpoints for checking that each integration is wired up.
# Every check reports its own status; none of these endpoints fail because
# an integration is down or unconfigured.
# =============================================================================

import logging
from datetime import datetime, timezone

from fastapi import APIRouter

from app.config import settings
from app.dependencies import CompletionDep, NotifierDep, OptionalStoreDep, SheetsDep
from lib.supabase_client import KNOWN_TABLES

logger = logging.getLogger(__name__)

router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/debug/test-db")
async def test_db(store: OptionalStoreDep):
    """Check each table the app uses."""
    if store is None:
        return {
            "success": False,
            "error": "Supabase is not configured",
            "instructions": "Set SUPABASE_URL and SUPABASE_SERVICE_KEY",
        }

    tables = {table: store.check_table(table) for table in KNOWN_TABLES}
    return {
        "success": True,
        "tables": tables,
        "instructions": {
            "ifTablesNotExist": "Create the missing tables in the Supabase dashboard",
            "step1": "Open your Supabase project SQL Editor",
            "step2": f"Create tables: {', '.join(KNOWN_TABLES)}",
        },
    }


@router.get("/debug/test-apis")
async def test_apis(
    store: OptionalStoreDep,
    sheets: SheetsDep,
    notifier: NotifierDep,
    completion: CompletionDep,
):
    """Check Supabase, Google Sheets, the webhook and OpenAI in turn."""
    results = {}

    if store is None:
        results["supabase"] = {"status": "error", "error": "Supabase is not configured"}
    else:
        check = store.check_table("clients")
        results["supabase"] = {
            "status": "ok" if check["exists"] else "error",
            "error": check["error"],
        }

    sheets_result = sheets.test_connection()
    results["googleSheets"] = {
        "status": "ok" if sheets_result["success"] else "error",
        "error": None if sheets_result["success"] else sheets_result["message"],
    }

    webhook_result = notifier.test_webhook()
    results["n8n"] = {
        "status": "ok" if webhook_result["success"] else "error",
        "error": None if webhook_result["success"] else webhook_result["message"],
    }

    results["openai"] = completion.check_connection()

    logger.info(
        "Integration check: "
        + ", ".join(f"{name}={r['status']}" for name, r in results.items())
    )

    return {
        "timestamp": _now(),
        "results": results,
        "environment": settings.configured_integrations(),
    }


@router.get("/n8n/test")
async def webhook_info():
    """Whether a webhook URL is configured."""
    return {
        "message": "N8N Test Endpoint",
        "webhookConfigured": bool(settings.N8N_WEBHOOK_URL),
        "timestamp": _now(),
    }


@router.post("/n8n/test")
async def webhook_test(notifier: NotifierDep):
    """Send a test event to the webhook."""
    logger.info("Testing N8N webhook connectivity")
    result = notifier.test_webhook()
    return {
        "success": result["success"],
        "message": result["message"],
        "timestamp": _now(),
    }
