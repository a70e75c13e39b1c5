# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains the integration clients and pure helpers:
# - supabase_client.py: Typed Supabase wrapper for tables and storage
# - completion_client.py: OpenAI chat-completion wrapper
# - sheets_client.py: Google Sheets reader with example-data fallback
# - normalizer.py: CSV / spreadsheet rows -> fact records
# - context.py: Persona context, enrichment prompt and greeting builders
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.supabase_client import SupabaseClient
from lib.completion_client import CompletionClient
from lib.sheets_client import GoogleSheetsClient
from lib.normalizer import (
    parse_csv_rows,
    csv_rows_to_facts,
    parse_sheet_rows,
    sheet_persona_to_facts,
    category_counts,
)
from lib.context import (
    build_persona_context,
    build_enrichment_prompt,
    greeting_for,
)

__all__ = [
    # Integrations
    "SupabaseClient",
    "CompletionClient",
    "GoogleSheetsClient",
    # Normalizer
    "parse_csv_rows",
    "csv_rows_to_facts",
    "parse_sheet_rows",
    "sheet_persona_to_facts",
    "category_counts",
    # Context
    "build_persona_context",
    "build_enrichment_prompt",
    "greeting_for",
]
