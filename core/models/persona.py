# =============================================================================
# core/models/persona.py - Persona Schemas
# =============================================================================
# These models define the shapes stored on a persona row:
# - FactRecord: one {Category, Type, Value, Source} data point (raw_data item)
# - EnrichmentResult: the structured profile returned by the enrichment call
# - Demographics: percentage / gender split / device preference map
# - Persona: the full persona row
# - SheetPersona: one audience row read from the Google Sheet
#
# Records are stored in Supabase as JSONB using the capitalised keys of the
# original upload format ("Category", "Value", ...). Inside the service they
# are always these typed models; dicts only appear at the database boundary.
# =============================================================================

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FactRecord(BaseModel):
    """
    One categorised data point about an audience segment.

    Example:
        {"Category": "Media Preferences", "Type": "Preference",
         "Value": "Guardian", "Source": "Google Sheets"}
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    category: str = Field(default="Other", alias="Category")
    type: str = Field(default="Preference", alias="Type")
    value: str = Field(default="", alias="Value")
    source: str = Field(default="", alias="Source")

    def to_row(self) -> dict[str, str]:
        """Serialize with the capitalised keys used in the database."""
        return self.model_dump(by_alias=True)

    @classmethod
    def from_row(cls, row: dict[str, Any], source: str = "CSV Upload") -> list["FactRecord"]:
        """
        Convert one tabular row into fact records.

        A row that already carries Category and Value columns (any case) is a
        single fact. Any other row is treated as a wide record: every
        non-empty cell becomes a fact categorised by its column header.
        """
        lowered = {str(k).strip().lower(): v for k, v in row.items()}

        if "category" in lowered and "value" in lowered:
            return [
                cls(
                    category=_text(lowered.get("category")) or "Other",
                    type=_text(lowered.get("type")) or "Preference",
                    value=_text(lowered.get("value")),
                    source=_text(lowered.get("source")) or source,
                )
            ]

        facts = []
        for header, cell in row.items():
            value = _text(cell)
            if not value:
                continue
            facts.append(
                cls(
                    category=str(header).strip() or "Other",
                    type="Attribute",
                    value=value,
                    source=source,
                )
            )
        return facts


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


class EnrichmentResult(BaseModel):
    """
    Structured persona profile returned by the enrichment model.

    The model is asked for the six keys below, but whatever it returns is
    kept: unknown keys are preserved and every field is optional.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: Any = None
    demographics: Any = None
    characteristics: Any = None
    content_preferences: Any = Field(default=None, alias="contentPreferences")
    purchase_motivators: Any = Field(default=None, alias="purchaseMotivators")
    marketing_recommendations: Any = Field(default=None, alias="marketingRecommendations")

    def to_row(self) -> dict[str, Any]:
        """Serialize with the camelCase keys the model produced."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def name_text(self) -> str | None:
        """The returned name, if the model gave a non-blank string."""
        if isinstance(self.name, str) and self.name.strip():
            return self.name.strip()
        return None

    def summary_text(self) -> str:
        """Flatten characteristics into a one-paragraph summary."""
        if isinstance(self.characteristics, list):
            parts = [str(item).strip() for item in self.characteristics if str(item).strip()]
            if parts:
                return " ".join(parts)
        elif isinstance(self.characteristics, str) and self.characteristics.strip():
            return self.characteristics.strip()
        return "Persona enriched"

    def demographics_map(self) -> dict[str, Any] | None:
        """Demographics as a map; free-text demographics become {"summary": ...}."""
        if isinstance(self.demographics, dict):
            return self.demographics
        if isinstance(self.demographics, str) and self.demographics.strip():
            return {"summary": self.demographics.strip()}
        return None


class Demographics(BaseModel):
    """
    Headline demographics shown in the persona context.

    Enrichment writes whatever the model returned, so the headline fields
    may hold numbers or nested objects; they are stored as-is and only
    turned into text by `headline()`.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    percentage: Any = None
    gender_split: Any = Field(default=None, alias="genderSplit")
    device_preference: Any = Field(default=None, alias="devicePreference")

    def headline(self, field: str) -> str | None:
        """A headline field as display text; non-scalar values give None."""
        value = getattr(self, field)
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            return None
        text = str(value).strip()
        return text or None

    def to_row(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class Persona(BaseModel):
    """
    A stored audience-segment persona.

    `raw_data` is empty while the persona is still being processed.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    project_id: str | None = None
    name: str
    csv_file_path: str | None = None
    raw_data: list[FactRecord] = Field(default_factory=list)
    enriched_data: EnrichmentResult | None = None
    summary: str | None = None
    demographics: Demographics | None = None
    created_at: datetime | None = None

    @field_validator("raw_data", mode="before")
    @classmethod
    def _coerce_raw_data(cls, value: Any) -> list[Any]:
        # Older rows may hold header-keyed CSV rows instead of fact records
        if not value:
            return []
        if not isinstance(value, list):
            return []
        facts: list[Any] = []
        for item in value:
            if isinstance(item, FactRecord):
                facts.append(item)
            elif isinstance(item, dict):
                facts.extend(FactRecord.from_row(item))
        return facts

    @field_validator("demographics", "enriched_data", mode="before")
    @classmethod
    def _ignore_non_mapping(cls, value: Any) -> Any:
        if isinstance(value, (dict, BaseModel)):
            return value
        return None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Persona":
        """Create Persona from a database row."""
        data = dict(row)
        data["id"] = str(data.get("id", ""))
        if data.get("project_id") is not None:
            data["project_id"] = str(data["project_id"])
        data.setdefault("name", "Unnamed persona")
        return cls.model_validate(data)

    @property
    def is_processing(self) -> bool:
        return not self.raw_data

    def to_response(self) -> dict[str, Any]:
        """Serialize for API responses."""
        return {
            "id": self.id,
            "project_id": self.project_id,
            "name": self.name,
            "csv_file_path": self.csv_file_path,
            "summary": self.summary,
            "demographics": self.demographics.to_row() if self.demographics else None,
            "raw_data": [fact.to_row() for fact in self.raw_data],
            "enriched_data": self.enriched_data.to_row() if self.enriched_data else None,
            "data_points": len(self.raw_data),
            "status": "processing" if self.is_processing else "ready",
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class SheetPersona(BaseModel):
    """
    One audience row from the persona spreadsheet.

    Column layout: A = "<name and demographics>: <summary>", B = percentage,
    C..L = comma-separated lists in the order of the list fields below.
    """

    audience_name: str
    percentage: str = "0%"
    gender_split: str = ""
    device_preference: str = ""
    summary: str = ""
    top_online_topics: list[str] = Field(default_factory=list)
    favourite_social_media: list[str] = Field(default_factory=list)
    favourite_media: list[str] = Field(default_factory=list)
    top_influencers: list[str] = Field(default_factory=list)
    favourite_brands: list[str] = Field(default_factory=list)
    top_jobs: list[str] = Field(default_factory=list)
    locations: list[str] = Field(default_factory=list)
    bio_keywords: list[str] = Field(default_factory=list)
    youtube_channels: list[str] = Field(default_factory=list)
    insights: list[str] = Field(default_factory=list)

    def demographics(self) -> Demographics:
        return Demographics(
            percentage=self.percentage,
            gender_split=self.gender_split,
            device_preference=self.device_preference,
        )
