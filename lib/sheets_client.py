# =============================================================================
# lib/sheets_client.py - Google Sheets Reader
# =============================================================================
# Reads audience personas from the shared persona spreadsheet via the Sheets
# v4 REST API (API-key auth, public sheet).
#
# Failure policy: when the key is missing, the API is unreachable or the
# sheet is empty, the built-in example dataset is returned instead so the
# import flow keeps working in development.
#
# Usage:
#   sheets = GoogleSheetsClient.from_settings(settings)
#   personas = sheets.get_persona_data("informed")
# =============================================================================

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from app.config import Settings
from core.models.persona import SheetPersona
from lib.normalizer import parse_sheet_rows

logger = logging.getLogger(__name__)

SHEETS_API_BASE = "https://sheets.googleapis.com/v4/spreadsheets"

# Built-in example audience used when the sheet cannot be read
MOCK_PERSONAS: list[SheetPersona] = [
    SheetPersona(
        audience_name="Informed Professionals",
        percentage="14%",
        gender_split="75% Male",
        device_preference="62% iOS",
        summary=(
            "Informed Professional Londoners are deeply engaged in the vibrant life of "
            "London, with a keen interest in politics and cultural discourse."
        ),
        top_online_topics=[
            "People and Society", "Children", "Parents", "Mental Health", "Experiences",
            "Wellbeing", "Diversity", "Teaching", "Books", "Law and Gov", "Business",
            "News", "Politics", "Movies",
        ],
        favourite_social_media=["LinkedIn", "X", "Instagram", "YouTube", "The Independent"],
        favourite_media=[
            "Private Eye", "Guardian", "QI", "The Onion", "The Independent", "Radio 4",
            "BBC Politics", "Tech Crunch", "WSJ", "LBC", "VICE", "Mashable",
            "Evening Standard", "BBC Newsnight", "Economist",
        ],
        top_influencers=[
            "David Mitchell", "Charlie Brooker", "Sadiq Khan", "Dara O'Brien",
            "Eddie Izzard", "Robert Peston", "Alastair Campbell", "Jeremy Corbyn",
            "Ed Miliband", "Nick Robinson", "Caroline Lucas", "Giles Coren",
            "Secret Footballer", "Jonathan Pie",
        ],
        favourite_brands=[
            "Amnesty International", "NASA", "Glastonbury", "Met Office", "UN",
            "Channel 4", "YouGov", "National Theatre", "SW Rail", "Labour Party",
        ],
        top_jobs=[
            "Director", "Writer", "Editor", "Founder", "Head", "Artist", "Creative",
            "Producer", "CEO", "Journalist", "Actor", "Activist", "Singer", "Presenter",
            "Trainer", "Comedian", "Investor", "Chef",
        ],
        locations=[
            "London", "Essex", "Hertfordshire", "Kent", "Manchester", "Bristol",
            "Enfield", "Surrey", "Cambridge", "Norfolk", "Wales",
        ],
        bio_keywords=[
            "Business", "Music", "Health", "Food", "Community", "Digital", "Art",
            "Events", "Local", "Marketing", "Family", "Professional", "Travel", "Tech",
            "Development",
        ],
        youtube_channels=[
            "Mrwhosetheboss", "Tech Spurt", "History Hit", "Tom Scott", "The Athletic",
            "Sky Sports Premier League", "TNT Sports", "COPA90", "talkSPORT",
            "ZONEofTECH", "Munya Chawawe", "QI", "Private Eye", "Guardian News",
            "BBC News", "Novara Media", "TED",
        ],
        insights=[
            "Professional Skew", "Intelligent/Educated", "Keen Learners",
            "Politically Engaged", "Mainstream Media", "Successful financially",
            "Creative", "Multi Dimensional", "Innovative and interested in tech",
            "Left Leaning", "Global outlook", "Comedy and Satire", "Rock Music",
            "Alcohol", "Art and design",
        ],
    ),
]


class GoogleSheetsClient:
    """Read-only access to the persona spreadsheet."""

    def __init__(
        self,
        api_key: str | None,
        sheet_id: str,
        sheet_name: str,
        timeout: float = 10.0,
        http_client: httpx.Client | None = None,
    ):
        self.api_key = api_key
        self.sheet_id = sheet_id
        self.sheet_name = sheet_name
        self.timeout = timeout
        self._http = http_client

    @classmethod
    def from_settings(cls, settings: Settings) -> "GoogleSheetsClient":
        return cls(
            api_key=settings.GOOGLE_SHEETS_API_KEY,
            sheet_id=settings.GOOGLE_SHEET_ID,
            sheet_name=settings.GOOGLE_SHEET_NAME,
            timeout=settings.WEBHOOK_TIMEOUT_SECONDS,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _get(self, url: str, params: dict[str, Any]) -> dict[str, Any]:
        params = {**params, "key": self.api_key}
        if self._http is not None:
            response = self._http.get(url, params=params, timeout=self.timeout)
        else:
            response = httpx.get(url, params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def fetch_values(self) -> list[list[Any]]:
        """
        Fetch columns A..L of the persona sheet.

        Raises:
            httpx.HTTPError: Request failed or returned a non-2xx status
        """
        value_range = quote(f"{self.sheet_name}!A:L", safe="!:")
        url = f"{SHEETS_API_BASE}/{self.sheet_id}/values/{value_range}"
        data = self._get(url, {})
        return data.get("values") or []

    def get_persona_data(self, persona_name: str | None = None) -> list[SheetPersona]:
        """
        Personas from the sheet, optionally filtered by a case-insensitive
        name substring. Falls back to the example dataset when the sheet
        cannot be read.
        """
        personas = self._load_personas()

        if persona_name:
            needle = persona_name.lower()
            return [p for p in personas if needle in p.audience_name.lower()]
        return personas

    def _load_personas(self) -> list[SheetPersona]:
        if not self.api_key:
            logger.warning("Google Sheets API key not configured, using example data")
            return list(MOCK_PERSONAS)

        try:
            rows = self.fetch_values()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error reading Google Sheets: {e}")
            logger.info("Falling back to example data")
            return list(MOCK_PERSONAS)

        if not rows:
            logger.info("No data found in Google Sheets, using example data")
            return list(MOCK_PERSONAS)

        personas = parse_sheet_rows(rows)
        logger.info(f"Read {len(personas)} personas from sheet '{self.sheet_name}'")
        return personas

    def test_connection(self) -> dict[str, Any]:
        """Fetch spreadsheet metadata. Never raises."""
        if not self.api_key:
            return {
                "success": False,
                "message": "Google Sheets API key not configured. Using mock data.",
            }

        try:
            data = self._get(
                f"{SHEETS_API_BASE}/{self.sheet_id}",
                {"fields": "properties.title,sheets.properties.title"},
            )
        except (httpx.HTTPError, ValueError) as e:
            return {
                "success": False,
                "message": f"Failed to connect to Google Sheets: {e}",
            }

        return {
            "success": True,
            "message": "Successfully connected to Google Sheets",
            "data": {
                "title": data.get("properties", {}).get("title"),
                "sheets": [
                    sheet.get("properties", {}).get("title")
                    for sheet in data.get("sheets", [])
                ],
            },
        }
