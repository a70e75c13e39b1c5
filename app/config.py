# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import settings
#   print(settings.SUPABASE_URL)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
#
# Integration credentials are optional at startup. Using an integration that
# is not configured raises ConfigurationError at call time, naming the
# missing variable.
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses pydantic-settings to:
    - Automatically load from .env file
    - Validate types and constraints
    - Provide sensible defaults for development

    All settings are accessed via the global `settings` instance.
    """

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------

    SUPABASE_URL: str = Field(
        default="",
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_ANON_KEY: str = Field(
        default="",
        description="Supabase anon/public API key"
    )

    SUPABASE_SERVICE_KEY: str = Field(
        default="",
        description="Supabase service_role key (bypasses RLS)"
    )

    CSV_BUCKET: str = Field(
        default="csv-uploads",
        description="Storage bucket holding uploaded CSV originals"
    )

    DEFAULT_PROJECT_ID: str = Field(
        default="22222222-2222-2222-2222-222222222222",
        description="Project used when an import request names none"
    )

    # -------------------------------------------------------------------------
    # OpenAI / LLM Configuration
    # -------------------------------------------------------------------------

    OPENAI_API_KEY: str = Field(
        default="",
        description="OpenAI API key for persona chat and enrichment"
    )

    OPENAI_MODEL: str = Field(
        default="gpt-4o-mini",
        description="Model used to answer persona chat queries"
    )

    ENRICHMENT_MODEL: str = Field(
        default="gpt-4-turbo-preview",
        description="Model used for persona enrichment (must support JSON mode)"
    )

    COMPLETION_TEMPERATURE: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="OpenAI temperature for all completion calls"
    )

    COMPLETION_MAX_TOKENS: int = Field(
        default=1000,
        ge=1,
        le=16000,
        description="Maximum output tokens for chat replies"
    )

    COMPLETION_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        gt=0,
        description="Request timeout for the completion API"
    )

    CONTEXT_MESSAGE_LIMIT: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Max conversation messages to include in persona context"
    )

    # -------------------------------------------------------------------------
    # Google Sheets Configuration
    # -------------------------------------------------------------------------

    GOOGLE_SHEETS_API_KEY: str = Field(
        default="",
        description="API key for reading public Google Sheets"
    )

    GOOGLE_SHEET_ID: str = Field(
        default="1X5hXnmSKNYtN1jdSQGPXXJ2Fnu8gNEXyFqqIUl31L1A",
        description="Spreadsheet holding the audience personas"
    )

    GOOGLE_SHEET_NAME: str = Field(
        default="WESTY Audience Example",
        description="Worksheet (tab) name inside the spreadsheet"
    )

    # -------------------------------------------------------------------------
    # Webhook (n8n) Configuration
    # -------------------------------------------------------------------------

    N8N_WEBHOOK_URL: str = Field(
        default="",
        description="n8n webhook receiving lifecycle events (empty = disabled)"
    )

    WEBHOOK_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for webhook and spreadsheet HTTP calls"
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging, auto-reload)"
    )

    API_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server to"
    )

    API_PORT: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port for the API server"
    )

    # CORS origins (comma-separated string that gets parsed)
    CORS_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # File Upload Settings
    # -------------------------------------------------------------------------

    MAX_UPLOAD_SIZE_MB: int = Field(
        default=10,
        ge=1,
        le=500,
        description="Maximum file upload size in MB"
    )

    ALLOWED_EXTENSIONS: str = Field(
        default=".csv",
        description="Allowed file extensions (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS_ORIGINS string into a list.

        Example: "http://localhost:3000, https://myapp.com" -> ["http://localhost:3000", "https://myapp.com"]
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def allowed_extensions_list(self) -> list[str]:
        """
        Parse ALLOWED_EXTENSIONS string into a list.

        Example: ".csv, .tsv" -> [".csv", ".tsv"]
        """
        return [ext.strip().lower() for ext in self.ALLOWED_EXTENSIONS.split(",")]

    @property
    def max_upload_size_bytes(self) -> int:
        """Convert MB to bytes for file size validation."""
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    def configured_integrations(self) -> dict[str, bool]:
        """Report which integration credentials are present (never their values)."""
        return {
            "hasSupabaseUrl": bool(self.SUPABASE_URL),
            "hasSupabaseAnonKey": bool(self.SUPABASE_ANON_KEY),
            "hasSupabaseServiceKey": bool(self.SUPABASE_SERVICE_KEY),
            "hasOpenAIKey": bool(self.OPENAI_API_KEY),
            "hasGoogleSheetsKey": bool(self.GOOGLE_SHEETS_API_KEY),
            "hasN8NWebhook": bool(self.N8N_WEBHOOK_URL),
        }


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Using lru_cache ensures we only parse .env and validate once,
    not on every access.

    Returns:
        Settings: The application settings instance
    """
    return Settings()


# Global settings instance for easy importing
# Usage: from app.config import settings
settings = get_settings()
