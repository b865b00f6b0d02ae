"""
Data transforms: turn decoded CSV rows into the truck-event record set and
derive per-record calendar columns on demand.
"""

import logging

import pandas as pd

from .config import TRUCK_EVENT_COLUMNS, UNKNOWN_TRUCK_ID
from .loaders.columns import missing_columns, resolve_columns
from .loaders.utils import parse_instant, parse_number, shift_date_of

logger = logging.getLogger(__name__)


def empty_events() -> pd.DataFrame:
    """Empty record set with the truck-event schema."""
    return pd.DataFrame(
        {
            "truck_id": pd.Series(dtype="object"),
            "material_name": pd.Series(dtype="object"),
            "arrival_text": pd.Series(dtype="object"),
            "departure_text": pd.Series(dtype="object"),
            "duration_minutes": pd.Series(dtype="float64"),
            "weight_kg": pd.Series(dtype="float64"),
        },
        columns=TRUCK_EVENT_COLUMNS,
    )


def _cell(row: list[str], idx: int | None) -> str:
    if idx is None or idx >= len(row):
        return ""
    return str(row[idx]).strip()


def build_truck_events(
    rows: list[list[str]],
    column_map: dict[str, int | None] | None = None,
) -> pd.DataFrame:
    """Build the truck-event record set from decoded rows.

    Parameters
    ----------
    rows : Output of decode_csv(); rows[0] is the header.
    column_map : Output of resolve_columns(). Resolved from the header
                 when omitted.

    Returns
    -------
    DataFrame with columns:
        truck_id, material_name, arrival_text, departure_text,
        duration_minutes, weight_kg

    Rows without a material name are dropped; row order is preserved and
    duplicates are kept.
    """
    if len(rows) < 2:
        logger.warning("Feed has no data rows")
        return empty_events()

    if column_map is None:
        column_map = resolve_columns(rows[0])

    missing = missing_columns(column_map)
    if missing:
        logger.warning("Columns not found in header, using defaults: %s", missing)

    records = []
    dropped = 0
    for row in rows[1:]:
        material = _cell(row, column_map.get("material_name"))
        if not material:
            dropped += 1
            continue

        records.append({
            "truck_id": _cell(row, column_map.get("truck_id")) or UNKNOWN_TRUCK_ID,
            "material_name": material,
            "arrival_text": _cell(row, column_map.get("arrival_text")),
            "departure_text": _cell(row, column_map.get("departure_text")),
            "duration_minutes": max(0.0, parse_number(_cell(row, column_map.get("duration_minutes")))),
            "weight_kg": max(0.0, parse_number(_cell(row, column_map.get("weight_kg")))),
        })

    if not records:
        logger.warning("No rows with a material name (%d dropped)", dropped)
        return empty_events()

    df = pd.DataFrame(records, columns=TRUCK_EVENT_COLUMNS)
    logger.info("Built truck events with %d rows (%d dropped)", len(df), dropped)
    return df


def with_arrival_instants(events: pd.DataFrame) -> pd.DataFrame:
    """Return a copy with ``arrival_at`` and ``shift_date`` columns.

    Unparseable arrivals get NaT / None. The record set itself never
    carries these columns; they are re-derived for each recomputation.
    """
    df = events.copy()
    instants = [parse_instant(text) for text in df["arrival_text"]]
    df["arrival_at"] = pd.to_datetime(
        pd.Series(instants, index=df.index, dtype="object"),
        errors="coerce",
    )
    df["shift_date"] = [None if ts is None else shift_date_of(ts) for ts in instants]
    return df


def list_materials(events: pd.DataFrame) -> list[str]:
    """Sorted unique material names for the material picker."""
    if events.empty:
        return []
    return sorted(events["material_name"].unique().tolist())
