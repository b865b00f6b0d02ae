"""
Header resolution for the yard export.

Header labels drift between Chinese and English exports and gain unit
suffixes over time, so fields are located by keyword containment rather
than by fixed position.
"""

import logging

from ..config import COLUMN_KEYWORDS

logger = logging.getLogger(__name__)


def find_column(headers: list[str], keywords: list[str]) -> int | None:
    """Index of the first header containing any keyword, case-insensitive."""
    lowered = [k.lower() for k in keywords]
    for idx, header in enumerate(headers):
        h = str(header).strip().lower()
        if any(k in h for k in lowered):
            return idx
    return None


def resolve_columns(
    header_row: list[str],
    keywords: dict[str, list[str]] | None = None,
) -> dict[str, int | None]:
    """Map each logical field to its column index, or None if absent."""
    table = keywords if keywords is not None else COLUMN_KEYWORDS
    headers = [str(h).strip() for h in header_row]
    return {field: find_column(headers, kws) for field, kws in table.items()}


def missing_columns(column_map: dict[str, int | None]) -> list[str]:
    return [field for field, idx in column_map.items() if idx is None]
