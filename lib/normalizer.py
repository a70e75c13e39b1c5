# =============================================================================
# lib/normalizer.py - CSV / Spreadsheet Normalizer
# =============================================================================
# Turns uploaded CSVs and spreadsheet rows into the canonical raw-data shape:
# an ordered list of FactRecord {Category, Type, Value, Source}.
#
# Two entry points:
# - CSV:    parse_csv_rows() -> header-keyed rows -> csv_rows_to_facts()
# - Sheets: parse_sheet_rows() -> SheetPersona -> sheet_persona_to_facts()
#
# Both paths end in fact records so the context builder only ever sees one
# shape.
# =============================================================================

from __future__ import annotations

import io
import logging
import re
from typing import Any

import pandas as pd

from app.exceptions import ValidationError
from core.models.persona import FactRecord, SheetPersona

logger = logging.getLogger(__name__)

CSV_SOURCE = "CSV Upload"
SHEETS_SOURCE = "Google Sheets"

# (SheetPersona field, fact Category label) in spreadsheet column order C..L
SHEET_CATEGORIES: list[tuple[str, str]] = [
    ("top_online_topics", "Online Topics"),
    ("favourite_social_media", "Social Media"),
    ("favourite_media", "Media Preferences"),
    ("top_influencers", "Influencers"),
    ("favourite_brands", "Brand Preferences"),
    ("top_jobs", "Job Titles"),
    ("locations", "Locations"),
    ("bio_keywords", "Bio Keywords"),
    ("youtube_channels", "YouTube Channels"),
    ("insights", "Insights"),
]

GENDER_PATTERN = re.compile(r"\d+% Male")
DEVICE_PATTERN = re.compile(r"\d+% iOS")


# =============================================================================
# CSV Path
# =============================================================================

def parse_csv_rows(content: bytes | str) -> list[dict[str, str]]:
    """
    Parse CSV content into one header-keyed mapping per data row.

    - The first line is the header row; names are trimmed
    - Blank lines are skipped
    - Values are trimmed; missing trailing fields become ""
    - A header with no data rows yields []

    Raises:
        ValidationError: Empty file, undecodable bytes, or a row with more
            fields than there are headers
    """
    if isinstance(content, bytes):
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ValidationError(
                field="file",
                message=f"CSV is not valid UTF-8: {e}",
                suggestion="Re-export the file with UTF-8 encoding",
            )
    else:
        text = content

    if not text.strip():
        raise ValidationError(
            field="file",
            message="CSV file is empty",
            suggestion="Upload a CSV with a header row and at least one data row",
        )

    # header=None: the header line fixes the field count, so a longer data
    # row is a parse error instead of being folded into an implicit index
    try:
        grid = pd.read_csv(
            io.StringIO(text),
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            skipinitialspace=True,
        )
    except pd.errors.ParserError as e:
        raise ValidationError(
            field="file",
            message=f"Failed to parse CSV: {e}",
            suggestion="Check that every row has no more fields than the header",
        )
    except pd.errors.EmptyDataError:
        raise ValidationError(
            field="file",
            message="CSV file has no header row",
            suggestion="The first line must list the column names",
        )

    grid = grid.fillna("")
    headers = [str(name).strip() for name in grid.iloc[0].tolist()]

    rows = [
        {header: str(value).strip() for header, value in zip(headers, values)}
        for values in grid.iloc[1:].itertuples(index=False, name=None)
    ]

    logger.debug(f"Parsed CSV: {len(rows)} rows x {len(headers)} columns")
    return rows


def csv_rows_to_facts(
    rows: list[dict[str, Any]],
    source: str = CSV_SOURCE,
) -> list[FactRecord]:
    """
    Convert header-keyed CSV rows into fact records.

    Rows in fact layout (Category/Value columns) map one-to-one; wide rows
    produce one fact per non-empty cell. Order follows the input.
    """
    facts: list[FactRecord] = []
    for row in rows:
        facts.extend(FactRecord.from_row(row, source=source))
    return facts


def normalize_csv(content: bytes | str) -> list[FactRecord]:
    """Parse and normalize an uploaded CSV in one step."""
    return csv_rows_to_facts(parse_csv_rows(content))


# =============================================================================
# Spreadsheet Path
# =============================================================================

def split_list(value: Any) -> list[str]:
    """Split a comma-separated cell into trimmed, non-empty items."""
    if not value or not isinstance(value, str):
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_sheet_row(row: list[Any], index: int = 0) -> SheetPersona:
    """
    Parse one spreadsheet data row.

    Column A holds "<audience name and demographics>: <summary>"; gender and
    device shares are pulled out of the name part.
    """
    cells = list(row) + [""] * max(0, 12 - len(row))

    first_column = str(cells[0] or "")
    name_part, _, summary = first_column.partition(":")
    name = name_part.strip() or f"Persona {index + 1}"

    gender = GENDER_PATTERN.search(name)
    device = DEVICE_PATTERN.search(name)

    lists = {
        field: split_list(cells[2 + offset])
        for offset, (field, _) in enumerate(SHEET_CATEGORIES)
    }

    return SheetPersona(
        audience_name=name,
        percentage=str(cells[1]).strip() or "0%",
        gender_split=gender.group(0) if gender else "",
        device_preference=device.group(0) if device else "",
        summary=summary.strip(),
        **lists,
    )


def parse_sheet_rows(rows: list[list[Any]]) -> list[SheetPersona]:
    """
    Parse a sheet's value grid.

    Row 0 is a title and row 1 the headers; every later row with a non-empty
    first cell is one persona.
    """
    personas = []
    for index, row in enumerate(rows[2:]):
        if not row or not str(row[0]).strip():
            continue
        personas.append(parse_sheet_row(row, index))
    return personas


def sheet_persona_to_facts(persona: SheetPersona) -> list[FactRecord]:
    """
    Flatten a sheet persona into fact records.

    Emits the two demographics records first, then one Preference record
    per list item in column order.
    """
    facts = [
        FactRecord(
            category="Demographics",
            type="Gender Split",
            value=persona.gender_split,
            source=SHEETS_SOURCE,
        ),
        FactRecord(
            category="Demographics",
            type="Device Preference",
            value=persona.device_preference,
            source=SHEETS_SOURCE,
        ),
    ]

    for field, label in SHEET_CATEGORIES:
        for item in getattr(persona, field):
            facts.append(
                FactRecord(
                    category=label,
                    type="Preference",
                    value=item,
                    source=SHEETS_SOURCE,
                )
            )

    return facts


def category_counts(persona: SheetPersona) -> dict[str, int]:
    """Per-category item counts for a sheet persona, plus a total."""
    counts = {label: len(getattr(persona, field)) for field, label in SHEET_CATEGORIES}
    counts["total"] = sum(counts.values())
    return counts
