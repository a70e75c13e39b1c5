# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - personas.py: CSV upload, fetch, enrich and delete personas
# - conversations.py: Persona chat turns and transcripts
# - sheets.py: Google Sheets audience import
# - templates.py: Canned query templates
# - debug.py: Integration diagnostics and webhook test
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import personas
from . import conversations
from . import sheets
from . import templates
from . import debug

__all__ = [
    "health",
    "personas",
    "conversations",
    "sheets",
    "templates",
    "debug",
]
