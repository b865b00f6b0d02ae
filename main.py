"""
Truck Yard Logistics — End-to-end analytics pipeline.

Fetches the yard feed (or generates a synthetic one), builds the record
set and prints every dashboard view.

Usage:
    python main.py                 # fetch CSV_URL once and print views
    python main.py --demo          # use the simulated feed
    python main.py --watch         # keep refreshing on the configured timer
    python main.py --insights      # also request the AI summary
"""

import argparse
import logging

from truckyard_dashboard.config import CSV_URL, SETTINGS_FILE
from truckyard_dashboard.dashboard import compute_dashboard_views
from truckyard_dashboard.insights import summarise_events
from truckyard_dashboard.refresh import FeedRefresher, RefreshScheduler
from truckyard_dashboard.settings import (
    FilterCriteria,
    default_filter,
    default_monitor_date,
    load_settings,
)
from truckyard_dashboard.simulator import generate_truck_feed

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def print_views(refresher: FeedRefresher, criteria: FilterCriteria, monitor_date: str, settings) -> None:
    """Recompute and print all view models for the current snapshot."""
    snapshot = refresher.snapshot
    views = compute_dashboard_views(
        snapshot.events, criteria, settings, monitor_date, snapshot.version
    )

    print("=" * 70)
    print(f"  TRUCK YARD DASHBOARD — snapshot v{views.version}")
    print(f"  Range {criteria.start_date} .. {criteria.end_date}"
          f"{'  material~' + criteria.material if criteria.material else ''}")
    print("=" * 70)

    print("\n[ 1 ] DAILY ROLLUPS")
    print("-" * 40)
    if views.daily_rollups.empty:
        print("No events in range.")
    else:
        print(views.daily_rollups.to_string(index=False))

    print("\n[ 2 ] RANGE SUMMARY")
    print("-" * 40)
    for key, value in views.range_summary.items():
        print(f"  {key:28s} {value}")

    print("\n[ 3 ] MATERIAL PARETO (top 10)")
    print("-" * 40)
    if not views.pareto.empty:
        print(views.pareto.to_string(index=False))
    print(f"  Top-10 total: {views.pareto_total}t "
          f"({views.pareto_share}% of {views.range_summary['total_tons']}t)")

    print("\n[ 4 ] HOURLY FLOW")
    print("-" * 40)
    busy = views.hourly_flow[views.hourly_flow["count"] > 0]
    print("  " + "  ".join(f"{r.label}:{r.count}" for r in busy.itertuples()))
    print(f"  AM: {views.am_span}   PM: {views.pm_span}")

    print(f"\n[ 5 ] MONITOR — shift day {monitor_date}")
    print("-" * 40)
    if views.monitor.empty:
        print("No entry records for the selected date.")
    else:
        cols = ["truck_id", "material_name", "arrival_text", "duration_minutes",
                "on_time_rate", "is_alert"]
        print(views.monitor[cols].head(20).to_string(index=False))
    print(f"  Average on-time rate: {views.monitor_avg_rate}% "
          f"(benchmark {settings.benchmark_minutes} min)")
    print()


def main() -> None:
    parser = argparse.ArgumentParser(description="Truck yard logistics pipeline")
    parser.add_argument("--url", default=CSV_URL, help="CSV feed URL")
    parser.add_argument("--demo", action="store_true", help="use the simulated feed")
    parser.add_argument("--start", help="first shift day YYYY-MM-DD")
    parser.add_argument("--end", help="last shift day YYYY-MM-DD")
    parser.add_argument("--material", default="", help="material name filter")
    parser.add_argument("--monitor-date", help="shift day for the on-time monitor")
    parser.add_argument("--settings", default=str(SETTINGS_FILE), help="settings JSON file")
    parser.add_argument("--watch", action="store_true", help="keep refreshing on a timer")
    parser.add_argument("--insights", action="store_true", help="request an AI summary")
    parser.add_argument("--language", default="English", help="AI summary language")
    args = parser.parse_args()

    settings = load_settings(args.settings)

    if args.demo:
        feed = generate_truck_feed()
        refresher = FeedRefresher(args.url, fetch=lambda _url: feed)
        criteria = FilterCriteria(args.start or "2026-01-01", args.end or "2026-01-14", args.material)
        monitor_date = args.monitor_date or "2026-01-14"
    else:
        refresher = FeedRefresher(args.url)
        default = default_filter()
        criteria = FilterCriteria(
            args.start or default.start_date,
            args.end or default.end_date,
            args.material,
        )
        monitor_date = args.monitor_date or default_monitor_date()

    refresher.refresh()
    print_views(refresher, criteria, monitor_date, settings)

    if args.insights:
        print("[ AI INSIGHTS ]")
        print("-" * 40)
        print(summarise_events(refresher.snapshot.events, args.language))
        print()

    if args.watch:
        def on_trigger() -> None:
            if refresher.refresh():
                print_views(refresher, criteria, monitor_date, settings)

        scheduler = RefreshScheduler(
            settings.refresh_rate_seconds,
            on_trigger,
            is_busy=lambda: refresher.in_flight,
        )
        logger.info("Refreshing every %ds (Ctrl+C to stop)", settings.refresh_rate_seconds)
        try:
            scheduler.run()
        except KeyboardInterrupt:
            logger.info("Stopped after %d scheduled refreshes", scheduler.triggers)


if __name__ == "__main__":
    main()
