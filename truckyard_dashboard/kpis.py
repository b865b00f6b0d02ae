"""
KPI computation functions — pure functions with no side effects.

Provides range filtering, shift-day rollups, range summary, material
pareto, hourly arrival flow and the single-day on-time monitor.
"""

import logging
import math
from decimal import ROUND_HALF_UP, Decimal

import pandas as pd

from .config import (
    EFFICIENCY_MODES,
    HOURS_PER_DAY,
    KG_PER_TONNE,
    NOON_HOUR,
    PARETO_TOP_N,
)
from .loaders.utils import shift_start
from .transforms import with_arrival_instants

logger = logging.getLogger(__name__)

ROLLUP_COLUMNS = ["date", "tonnage", "event_count", "total_minutes", "avg_minutes_per_event"]
PARETO_COLUMNS = ["material_name", "tonnage", "cumulative_percentage"]
NO_ACTIVE_HOURS = "--"


def round_half_up(val: float) -> int:
    """Round to the nearest integer, halves going up (2.5 -> 3)."""
    return int(math.floor(val + 0.5))


def round_to(val: float, places: int = 1) -> float:
    """Round to ``places`` decimals, halves going up on the exact binary value."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(float(val)).quantize(quantum, rounding=ROUND_HALF_UP))


def _ensure_instants(events: pd.DataFrame) -> pd.DataFrame:
    if "arrival_at" in events.columns:
        return events
    return with_arrival_instants(events)


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------

def events_between(
    events: pd.DataFrame,
    start: pd.Timestamp,
    end: pd.Timestamp,
) -> pd.DataFrame:
    """Events whose arrival falls in ``[start, end)``; unparseable arrivals excluded."""
    df = _ensure_instants(events)
    mask = df["arrival_at"].notna() & (df["arrival_at"] >= start) & (df["arrival_at"] < end)
    return df[mask]


def filter_events(events: pd.DataFrame, criteria) -> pd.DataFrame:
    """Apply a FilterCriteria: shift-day range plus material substring.

    The range is ``[07:00 start_date, 07:00 the day after end_date)``.
    Returns the matching events with ``arrival_at`` / ``shift_date`` attached.
    """
    start = shift_start(criteria.start_date)
    end_day = shift_start(criteria.end_date)
    if start is None or end_day is None:
        logger.warning(
            "Unparseable filter range %s..%s", criteria.start_date, criteria.end_date
        )
        return _ensure_instants(events).iloc[0:0]

    df = events_between(events, start, end_day + pd.Timedelta(days=1))

    material = criteria.material or ""
    if material:
        df = df[df["material_name"].str.lower().str.contains(material.lower(), regex=False)]

    logger.debug("Filtered %d of %d events", len(df), len(events))
    return df


# ---------------------------------------------------------------------------
# Shift-day rollups
# ---------------------------------------------------------------------------

def build_daily_rollups(filtered: pd.DataFrame) -> pd.DataFrame:
    """Aggregate filtered events to shift-day grain.

    Rules
    -----
    - tonnage: sum of weight_kg / 1000, rounded to 1 decimal per day
    - event_count: number of events
    - total_minutes: sum of duration_minutes
    - avg_minutes_per_event: total_minutes / event_count, rounded

    Returns
    -------
    DataFrame with columns:
        date, tonnage, event_count, total_minutes, avg_minutes_per_event
    sorted ascending by date.
    """
    df = _ensure_instants(filtered)
    df = df[df["arrival_at"].notna()]
    if df.empty:
        return pd.DataFrame(columns=ROLLUP_COLUMNS)

    df = df.assign(tonnes=df["weight_kg"] / KG_PER_TONNE)
    grouped = df.groupby("shift_date", sort=True).agg(
        tonnage=("tonnes", "sum"),
        event_count=("tonnes", "size"),
        total_minutes=("duration_minutes", "sum"),
    )

    result = grouped.reset_index().rename(columns={"shift_date": "date"})
    result["tonnage"] = [round_to(t, 1) for t in result["tonnage"]]
    result["event_count"] = result["event_count"].astype(int)
    result["avg_minutes_per_event"] = [
        round_half_up(total / count)
        for total, count in zip(result["total_minutes"], result["event_count"])
    ]
    return result[ROLLUP_COLUMNS]


def summarise_range(rollups: pd.DataFrame) -> dict:
    """Range-wide totals and per-day averages over the daily rollups.

    ``days`` is the number of shift days present, never less than 1.
    """
    total_tons = float(rollups["tonnage"].sum()) if not rollups.empty else 0.0
    total_counts = int(rollups["event_count"].sum()) if not rollups.empty else 0
    total_minutes = float(rollups["total_minutes"].sum()) if not rollups.empty else 0.0
    days = max(len(rollups), 1)

    return {
        "total_tons": round_to(total_tons, 1),
        "total_counts": total_counts,
        "total_minutes": total_minutes,
        "avg_tons_per_day": round_to(total_tons / days, 1),
        "avg_counts_per_day": round_to(total_counts / days, 1),
        "avg_total_minutes_per_day": round_half_up(total_minutes / days),
        "avg_minutes_per_event": (
            round_half_up(total_minutes / total_counts) if total_counts > 0 else 0
        ),
        "days": days,
    }


def efficiency_series(rollups: pd.DataFrame, mode: str = "avg") -> pd.DataFrame:
    """Per-day processing minutes: average per event ("avg") or day total ("total")."""
    if mode not in EFFICIENCY_MODES:
        raise ValueError(f"Unknown efficiency mode: {mode!r}")
    column = "avg_minutes_per_event" if mode == "avg" else "total_minutes"
    if rollups.empty:
        return pd.DataFrame(columns=["date", "minutes"])
    return pd.DataFrame({"date": rollups["date"], "minutes": rollups[column]})


# ---------------------------------------------------------------------------
# Material pareto
# ---------------------------------------------------------------------------

def build_pareto(
    filtered: pd.DataFrame,
    top_n: int = PARETO_TOP_N,
) -> tuple[pd.DataFrame, float]:
    """Rank materials by tonnage and compute the cumulative percentage.

    Materials tied on tonnage keep the order in which they were first
    encountered. Tonnage is rounded to 1 decimal per material before the
    running total is taken.

    Returns
    -------
    (DataFrame with columns material_name, tonnage, cumulative_percentage,
     total tonnage of the listed materials)
    """
    if filtered.empty:
        return pd.DataFrame(columns=PARETO_COLUMNS), 0.0

    tonnes = (filtered["weight_kg"] / KG_PER_TONNE).groupby(
        filtered["material_name"], sort=False
    ).sum()
    ranked = sorted(tonnes.items(), key=lambda item: item[1], reverse=True)[:top_n]
    ranked = [(name, round_to(t, 1)) for name, t in ranked]
    top_total = sum(t for _, t in ranked)

    rows = []
    cumulative = 0.0
    for name, t in ranked:
        cumulative += t
        pct = round_half_up(cumulative / top_total * 100) if top_total > 0 else 0
        rows.append({"material_name": name, "tonnage": t, "cumulative_percentage": pct})

    return pd.DataFrame(rows, columns=PARETO_COLUMNS), round_to(top_total, 1)


def pareto_share(top_total: float, total_tons: float) -> float:
    """Share of range tonnage carried by the pareto materials, in percent."""
    if total_tons <= 0:
        return 0.0
    return round_to(top_total / total_tons * 100, 1)


# ---------------------------------------------------------------------------
# Hourly flow
# ---------------------------------------------------------------------------

def build_hourly_flow(filtered: pd.DataFrame) -> pd.DataFrame:
    """Count arrivals per clock hour (0-23).

    Uses the plain hour of day, not the shift-day offset.

    Returns
    -------
    DataFrame with 24 rows and columns: hour, label, count
    """
    df = _ensure_instants(filtered)
    hours = df["arrival_at"].dropna().dt.hour
    counts = hours.value_counts().reindex(range(HOURS_PER_DAY), fill_value=0)
    return pd.DataFrame({
        "hour": list(range(HOURS_PER_DAY)),
        "label": [f"{h}h" for h in range(HOURS_PER_DAY)],
        "count": [int(c) for c in counts.tolist()],
    })


def _span(flow: pd.DataFrame, first: int, last: int) -> str:
    active = flow[(flow["hour"] >= first) & (flow["hour"] <= last) & (flow["count"] > 0)]
    if active.empty:
        return NO_ACTIVE_HOURS
    return f"{int(active['hour'].min())}h~{int(active['hour'].max())}h"


def active_hour_spans(flow: pd.DataFrame) -> tuple[str, str]:
    """(AM span, PM span) of hours with arrivals, e.g. ("6h~11h", "--")."""
    return _span(flow, 0, NOON_HOUR - 1), _span(flow, NOON_HOUR, HOURS_PER_DAY - 1)


# ---------------------------------------------------------------------------
# Single-day monitor
# ---------------------------------------------------------------------------

def on_time_rate(duration_minutes: float, benchmark_minutes: float) -> int:
    """Benchmark over actual duration as a percentage, capped at 100.

    A zero or missing duration counts as fully on time.
    """
    if not duration_minutes or not duration_minutes > 0:
        return 100
    return min(100, round_half_up(benchmark_minutes / duration_minutes * 100))


def build_monitor_view(
    events: pd.DataFrame,
    monitor_date: str,
    benchmark_minutes: float,
    warn_threshold_percent: float,
) -> tuple[pd.DataFrame, int]:
    """All events of one shift day, newest arrival first, with on-time rates.

    The date-range and material filters do not apply here.

    Returns
    -------
    (DataFrame with the event columns plus arrival_at, shift_date,
     on_time_rate, is_alert, is_complete, load_percentage;
     unweighted average on_time_rate, 0 when there are no events)
    """
    start = shift_start(monitor_date)
    if start is None:
        logger.warning("Unparseable monitor date: %s", monitor_date)
        return _ensure_instants(events).iloc[0:0], 0

    day = events_between(events, start, start + pd.Timedelta(days=1))
    if day.empty:
        return day, 0

    items = day.sort_values("arrival_at", ascending=False, kind="stable").copy()
    rates = [on_time_rate(d, benchmark_minutes) for d in items["duration_minutes"]]
    items["on_time_rate"] = rates
    items["is_alert"] = [r < warn_threshold_percent for r in rates]
    items["is_complete"] = items["departure_text"].str.len() > 0
    items["load_percentage"] = [
        min(100.0, d / benchmark_minutes * 100) if benchmark_minutes > 0 else 0.0
        for d in items["duration_minutes"]
    ]
    avg_rate = round_half_up(sum(rates) / len(rates))
    return items.reset_index(drop=True), avg_rate
