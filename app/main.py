# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the Quarterback API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.exceptions import (
    QuarterbackException,
    quarterback_exception_handler,
    validation_exception_handler,
)
from app.routers import conversations, debug, health, personas, sheets, templates

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Logs the environment and which integrations are configured. Missing
    credentials are not fatal here; the endpoint that needs them reports it.
    """
    logger.info(f"Starting Quarterback API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")

    missing = [name for name, present in settings.configured_integrations().items() if not present]
    if missing:
        logger.warning(f"Integrations not configured: {', '.join(missing)}")

    yield

    logger.info("Shutting down Quarterback API")


# Create FastAPI application
app = FastAPI(
    title="Quarterback API",
    description="""
## Audience Persona API

Quarterback turns audience-segment data into personas you can talk to.

### How It Works

1. **Create a Persona** - Upload a CSV or import an audience from Google Sheets
2. **Enrich** - Let the model build a structured persona profile
3. **Chat** - Ask the persona questions; answers are grounded in its data

### Quick Start

```bash
# 1. Upload a CSV
curl -X POST http://localhost:8000/api/v1/personas \\
  -F "project_id=22222222-2222-2222-2222-222222222222" \\
  -F "file=@audience.csv"

# 2. Ask a question (opens a conversation)
curl -X POST http://localhost:8000/api/v1/query-persona \\
  -H "Content-Type: application/json" \\
  -d '{"personaId": "<id>", "query": "What do you read?"}'
```
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Personas",
            "description": "Create, enrich and delete audience personas",
        },
        {
            "name": "Conversations",
            "description": "Chat with a persona",
        },
        {
            "name": "Sheets",
            "description": "Import audiences from Google Sheets",
        },
        {
            "name": "Templates",
            "description": "Canned marketing questions",
        },
        {
            "name": "Debug",
            "description": "Integration diagnostics",
        },
        {
            "name": "Health",
            "description": "API health and readiness checks",
        },
    ],
)


# =============================================================================
# Middleware
# =============================================================================

# CORS middleware - allows cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(QuarterbackException)
async def handle_quarterback_exception(request: Request, exc: QuarterbackException):
    """Handle custom Quarterback exceptions."""
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return await quarterback_exception_handler(request, exc)


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError):
    """Handle request-body schema errors."""
    return await validation_exception_handler(request, exc)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

# Health check endpoints
app.include_router(
    health.router,
    prefix="/api/v1",
    tags=["Health"]
)

# Persona endpoints
app.include_router(
    personas.router,
    prefix="/api/v1",
    tags=["Personas"]
)

# Chat endpoints
app.include_router(
    conversations.router,
    prefix="/api/v1",
    tags=["Conversations"]
)

# Google Sheets import endpoints
app.include_router(
    sheets.router,
    prefix="/api/v1",
    tags=["Sheets"]
)

# Query template endpoints
app.include_router(
    templates.router,
    prefix="/api/v1",
    tags=["Templates"]
)

# Diagnostics endpoints
app.include_router(
    debug.router,
    prefix="/api/v1",
    tags=["Debug"]
)


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "Quarterback API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/v1/health",
    }
