# =============================================================================
# lib/context.py - Persona Prompt Builders
# =============================================================================
# This module builds the prompts sent to the completion model:
# - the persona system context used for every chat turn
# - the enrichment prompt that turns raw data into a structured profile
# - the UI greeting shown when a conversation is opened (never persisted)
#
# Everything here is pure: same persona + same messages -> same text.
#
# Usage:
#   from lib.context import build_persona_context
#   system = build_persona_context(persona, messages)
# =============================================================================

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from core.models.conversation import Message
from core.models.persona import FactRecord, Persona

# Set up logging for this module
logger = logging.getLogger(__name__)

# Distinct values listed per category before the line is cut with "..."
MAX_VALUES_PER_CATEGORY = 10

PERSONA_INSTRUCTIONS = """Instructions:
1. Always respond from the perspective of this specific audience segment
2. Use "we" and "our" to represent the collective voice of this audience
3. Be specific and reference the actual data points when relevant
4. Avoid generic responses - tailor everything to this audience's characteristics
5. If asked about preferences, purchases, or behaviors, ground your response in the data
6. Be direct and factual without unnecessary praise or encouragement
7. For marketing/campaign questions, suggest strategies that would genuinely resonate with this audience"""

ENRICHMENT_SYSTEM_PROMPT = "You are an expert market researcher creating detailed audience personas."

ENRICHMENT_KEYS = (
    "name",
    "demographics",
    "characteristics",
    "contentPreferences",
    "purchaseMotivators",
    "marketingRecommendations",
)


# =============================================================================
# Persona Context
# =============================================================================

@dataclass
class PersonaContext:
    """
    Everything the model needs to answer as a persona.

    Holds the persona's headline fields, its data points grouped by
    category (first-seen order) and the recent transcript, oldest first.
    """

    name: str
    percentage: str = "Unknown %"
    gender_split: str = "Mixed gender"
    device_preference: str = "Various devices"
    summary: str = "No summary available"
    categories: dict[str, list[str]] = field(default_factory=dict)
    messages: list[Message] = field(default_factory=list)

    @classmethod
    def from_persona(cls, persona: Persona, messages: list[Message] | None = None) -> "PersonaContext":
        demographics = persona.demographics
        return cls(
            name=persona.name,
            percentage=(demographics.headline("percentage") if demographics else None) or "Unknown %",
            gender_split=(demographics.headline("gender_split") if demographics else None) or "Mixed gender",
            device_preference=(demographics.headline("device_preference") if demographics else None) or "Various devices",
            summary=persona.summary or "No summary available",
            categories=group_by_category(persona.raw_data),
            messages=list(messages or []),
        )

    def format_for_llm(self) -> str:
        """Render the system prompt for a chat turn."""
        sections = [
            self._format_header(),
            self._format_data_points(),
            PERSONA_INSTRUCTIONS,
            self._format_messages(),
        ]
        return "\n\n".join(sections)

    def _format_header(self) -> str:
        return (
            f'You are responding as the "{self.name}" persona. This persona represents '
            f"a specific audience segment with these characteristics:\n"
            f"\n"
            f"Demographics:\n"
            f"- {self.percentage} of the total audience\n"
            f"- {self.gender_split}\n"
            f"- {self.device_preference}\n"
            f"\n"
            f"Summary: {self.summary}"
        )

    def _format_data_points(self) -> str:
        lines = ["Key Data Points:"]
        for category, values in self.categories.items():
            shown = ", ".join(values[:MAX_VALUES_PER_CATEGORY])
            more = "..." if len(values) > MAX_VALUES_PER_CATEGORY else ""
            lines.append(f"{category}: {shown}{more}")
        return "\n".join(lines)

    def _format_messages(self) -> str:
        lines = ["Previous conversation:"]
        for msg in self.messages:
            lines.append(f"{msg.role.value}: {msg.content}")
        return "\n".join(lines)


def group_by_category(facts: list[FactRecord]) -> dict[str, list[str]]:
    """Group distinct fact values by Category, preserving first-seen order."""
    categories: dict[str, list[str]] = {}
    for fact in facts:
        values = categories.setdefault(fact.category or "Other", [])
        if fact.value not in values:
            values.append(fact.value)
    return categories


def build_persona_context(persona: Persona, messages: list[Message] | None = None) -> str:
    """
    Build the system context for one chat turn.

    Args:
        persona: The persona being queried
        messages: Recent transcript, oldest first

    Returns:
        Prompt text: persona header, demographics, summary, data points,
        answering instructions and the previous conversation
    """
    context = PersonaContext.from_persona(persona, messages).format_for_llm()
    logger.debug(
        f"Built context for persona {persona.id}: "
        f"{len(persona.raw_data)} data points, {len(messages or [])} messages"
    )
    return context


# =============================================================================
# Enrichment Prompt
# =============================================================================

def build_enrichment_prompt(raw_data: list[FactRecord]) -> str:
    """User prompt asking the model to turn raw data points into a persona profile."""
    data = json.dumps([fact.to_row() for fact in raw_data], indent=2)
    return (
        "I'm going to upload a CSV file which has a number of categorised data points "
        "about an audience segment. Based on this data, create a detailed persona that "
        "represents this audience.\n"
        "\n"
        "Analyze the following data and create a persona profile:\n"
        f"{data}\n"
        "\n"
        "Provide:\n"
        "1. A name for this persona\n"
        "2. Demographics summary\n"
        "3. Key characteristics and behaviors\n"
        "4. Content preferences\n"
        "5. Purchase motivators\n"
        "6. Marketing recommendations\n"
        "\n"
        f"Format the response as JSON with these keys: {', '.join(ENRICHMENT_KEYS)}"
    )


# =============================================================================
# Greeting
# =============================================================================

def greeting_for(persona: Persona | dict[str, Any]) -> str:
    """Opening line shown when a conversation starts."""
    name = persona.name if isinstance(persona, Persona) else persona.get("name", "")
    return (
        f"I am the {name} persona. I've been created from the audience data you provided. "
        "I'll answer all your questions from the perspective of this audience segment. "
        "Let me know what you'd like to explore about this audience."
    )
