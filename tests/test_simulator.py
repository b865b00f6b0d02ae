"""Tests for the simulated feed and a full feed-to-views pass over it."""

from truckyard_dashboard.dashboard import compute_dashboard_views
from truckyard_dashboard.loaders.columns import missing_columns, resolve_columns
from truckyard_dashboard.loaders.csv_feed import decode_csv
from truckyard_dashboard.refresh import FeedRefresher
from truckyard_dashboard.settings import DashboardSettings, FilterCriteria
from truckyard_dashboard.simulator import (
    FEED_HEADERS,
    generate_truck_events,
    generate_truck_feed,
)


class TestGenerateTruckEvents:
    def test_header_first(self):
        rows = generate_truck_events(days=2, trucks_per_day=5)
        assert rows[0] == FEED_HEADERS
        assert len(rows) > 1

    def test_headers_resolve_fully(self):
        assert missing_columns(resolve_columns(FEED_HEADERS)) == []

    def test_deterministic_for_seed(self):
        assert generate_truck_feed(days=3, seed=7) == generate_truck_feed(days=3, seed=7)

    def test_different_seeds_differ(self):
        assert generate_truck_feed(days=3, seed=1) != generate_truck_feed(days=3, seed=2)

    def test_feed_decodes_to_same_rows(self):
        rows = generate_truck_events(days=2, trucks_per_day=10)
        assert decode_csv(generate_truck_feed(days=2, trucks_per_day=10)) == rows


class TestSimulatedPipeline:
    def test_feed_to_views(self):
        feed = generate_truck_feed(start_day="2026-01-01", days=5, trucks_per_day=30)
        refresher = FeedRefresher(fetch=lambda _url: feed)
        assert refresher.refresh()

        snapshot = refresher.snapshot
        views = compute_dashboard_views(
            snapshot.events,
            FilterCriteria("2026-01-01", "2026-01-05"),
            DashboardSettings(),
            monitor_date="2026-01-03",
            version=snapshot.version,
        )

        assert views.daily_rollups["date"].tolist() == [
            "2026-01-01", "2026-01-02", "2026-01-03", "2026-01-04", "2026-01-05",
        ]
        assert views.range_summary["total_counts"] == len(snapshot.events)
        assert views.pareto["cumulative_percentage"].iloc[-1] == 100
        assert views.hourly_flow["count"].sum() == len(snapshot.events)
        assert (views.monitor["on_time_rate"] <= 100).all()
        assert not views.monitor.empty
