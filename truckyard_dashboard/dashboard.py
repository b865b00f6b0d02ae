"""
Dashboard-ready output functions.

compute_dashboard_views() is the single entry point for a Streamlit front
end. It recomputes every view model from the current record snapshot,
filter and settings, and tags the result with the snapshot version so the
front end can tell when charts need re-rendering.
"""

import logging
from dataclasses import dataclass

import pandas as pd

from .kpis import (
    active_hour_spans,
    build_daily_rollups,
    build_hourly_flow,
    build_monitor_view,
    build_pareto,
    filter_events,
    pareto_share,
    summarise_range,
)
from .settings import DashboardSettings, FilterCriteria
from .transforms import list_materials

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class DashboardViews:
    version: int
    daily_rollups: pd.DataFrame
    range_summary: dict
    pareto: pd.DataFrame
    pareto_total: float
    pareto_share: float
    hourly_flow: pd.DataFrame
    am_span: str
    pm_span: str
    monitor: pd.DataFrame
    monitor_avg_rate: int
    materials: list[str]


def compute_dashboard_views(
    events: pd.DataFrame,
    criteria: FilterCriteria,
    settings: DashboardSettings,
    monitor_date: str,
    version: int = 0,
) -> DashboardViews:
    """Recompute all view models from a record snapshot.

    Parameters
    ----------
    events : Record set from build_truck_events().
    criteria : Shift-day range and material filter for the range views.
    settings : Supplies benchmark and warning threshold for the monitor.
    monitor_date : Shift day shown in the monitor (ignores ``criteria``).
    version : Snapshot version the views are derived from.
    """
    filtered = filter_events(events, criteria)

    rollups = build_daily_rollups(filtered)
    summary = summarise_range(rollups)
    pareto, pareto_total = build_pareto(filtered)
    flow = build_hourly_flow(filtered)
    am_span, pm_span = active_hour_spans(flow)
    monitor, avg_rate = build_monitor_view(
        events,
        monitor_date,
        settings.benchmark_minutes,
        settings.warn_threshold_percent,
    )

    logger.info(
        "Computed views v%d: %d events in range, %d shift days, %d in monitor",
        version, len(filtered), len(rollups), len(monitor),
    )

    return DashboardViews(
        version=version,
        daily_rollups=rollups,
        range_summary=summary,
        pareto=pareto,
        pareto_total=pareto_total,
        pareto_share=pareto_share(pareto_total, summary["total_tons"]),
        hourly_flow=flow,
        am_span=am_span,
        pm_span=pm_span,
        monitor=monitor,
        monitor_avg_rate=avg_rate,
        materials=list_materials(events),
    )
