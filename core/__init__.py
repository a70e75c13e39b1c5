# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains the persona business logic:
# - models/: Pydantic schemas for personas, conversations, webhooks, templates
# - services/: Persona lifecycle, chat pipeline, storage, notifications
#
# Services receive their integration clients in the constructor, so they
# can be tested with in-memory fakes.
# =============================================================================
