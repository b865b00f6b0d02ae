"""Tests for the aggregation functions."""

import pandas as pd
import pytest

from truckyard_dashboard.kpis import (
    active_hour_spans,
    build_daily_rollups,
    build_hourly_flow,
    build_monitor_view,
    build_pareto,
    efficiency_series,
    filter_events,
    on_time_rate,
    pareto_share,
    round_half_up,
    round_to,
    summarise_range,
)
from truckyard_dashboard.settings import FilterCriteria
from truckyard_dashboard.transforms import build_truck_events

from .conftest import make_events

MARCH = FilterCriteria("2024-03-04", "2024-03-05")


# ===================================================================
# Rounding
# ===================================================================


class TestRounding:
    @pytest.mark.parametrize("val,expected", [(2.5, 3), (22.5, 23), (2.49, 2), (0.0, 0), (127.5, 128)])
    def test_round_half_up(self, val, expected):
        assert round_half_up(val) == expected

    def test_round_to_one_decimal(self):
        assert round_to(1.25, 1) == 1.3
        assert round_to(0.04, 1) == 0.0


# ===================================================================
# Filtering
# ===================================================================


class TestFilterEvents:
    def test_range_uses_shift_boundaries(self, yard_events):
        filtered = filter_events(yard_events, FilterCriteria("2024-03-04", "2024-03-04"))
        assert filtered["truck_id"].tolist() == ["T-01", "T-02", "T-03"]

    def test_end_boundary_is_exclusive(self):
        events = make_events([
            ["A", "Coal", "2024-03-05 06:59", "", "1", "1"],
            ["B", "Coal", "2024-03-05 07:00", "", "1", "1"],
        ])
        filtered = filter_events(events, FilterCriteria("2024-03-04", "2024-03-04"))
        assert filtered["truck_id"].tolist() == ["A"]

    def test_start_boundary_is_inclusive(self):
        events = make_events([
            ["A", "Coal", "2024-03-04 06:59", "", "1", "1"],
            ["B", "Coal", "2024-03-04 07:00", "", "1", "1"],
        ])
        filtered = filter_events(events, FilterCriteria("2024-03-04", "2024-03-04"))
        assert filtered["truck_id"].tolist() == ["B"]

    def test_unparseable_arrival_excluded(self, yard_events):
        filtered = filter_events(yard_events, MARCH)
        assert "T-06" not in filtered["truck_id"].tolist()
        assert len(filtered) == 5

    def test_material_substring_case_insensitive(self, yard_events):
        filtered = filter_events(yard_events, FilterCriteria("2024-03-04", "2024-03-05", "iRoN"))
        assert filtered["truck_id"].tolist() == ["T-01", "T-03"]

    def test_material_is_literal_not_regex(self, yard_events):
        filtered = filter_events(yard_events, FilterCriteria("2024-03-04", "2024-03-05", "."))
        assert filtered.empty

    def test_material_used_as_given(self, yard_events):
        padded = filter_events(yard_events, FilterCriteria("2024-03-04", "2024-03-05", " coal"))
        assert padded.empty
        inner = filter_events(yard_events, FilterCriteria("2024-03-04", "2024-03-05", "n o"))
        assert inner["truck_id"].tolist() == ["T-01", "T-03"]

    def test_unparseable_range_is_empty(self, yard_events):
        assert filter_events(yard_events, FilterCriteria("bad", "2024-03-05")).empty

    def test_empty_events(self):
        assert filter_events(build_truck_events([]), MARCH).empty


# ===================================================================
# Daily rollups + range summary
# ===================================================================


class TestDailyRollups:
    def test_grouped_by_shift_day(self, yard_events):
        rollups = build_daily_rollups(filter_events(yard_events, MARCH))
        assert rollups["date"].tolist() == ["2024-03-04", "2024-03-05"]
        assert rollups["tonnage"].tolist() == [35.0, 10.0]
        assert rollups["event_count"].tolist() == [3, 2]
        assert rollups["total_minutes"].tolist() == [210.0, 45.0]
        assert rollups["avg_minutes_per_event"].tolist() == [70, 23]

    def test_tonnage_rounded_per_day_not_per_record(self):
        events = make_events([
            ["A", "Coal", "2024-03-04 08:00", "", "1", "40"],
            ["B", "Coal", "2024-03-04 09:00", "", "1", "40"],
        ])
        rollups = build_daily_rollups(filter_events(events, MARCH))
        assert rollups["tonnage"].tolist() == [0.1]

    def test_empty(self):
        rollups = build_daily_rollups(build_truck_events([]))
        assert rollups.empty
        assert list(rollups.columns) == [
            "date", "tonnage", "event_count", "total_minutes", "avg_minutes_per_event",
        ]


class TestSummariseRange:
    def test_summary(self, yard_events):
        summary = summarise_range(build_daily_rollups(filter_events(yard_events, MARCH)))
        assert summary == {
            "total_tons": 45.0,
            "total_counts": 5,
            "total_minutes": 255.0,
            "avg_tons_per_day": 22.5,
            "avg_counts_per_day": 2.5,
            "avg_total_minutes_per_day": 128,
            "avg_minutes_per_event": 51,
            "days": 2,
        }

    def test_empty_range_has_one_day_and_zeros(self):
        summary = summarise_range(build_daily_rollups(build_truck_events([])))
        assert summary["days"] == 1
        assert summary["total_tons"] == 0.0
        assert summary["avg_minutes_per_event"] == 0
        assert summary["avg_tons_per_day"] == 0.0

    def test_avg_times_days_close_to_total(self, yard_events):
        summary = summarise_range(build_daily_rollups(filter_events(yard_events, MARCH)))
        assert abs(summary["avg_tons_per_day"] * summary["days"] - summary["total_tons"]) <= 0.05 * summary["days"]


class TestEfficiencySeries:
    def test_avg_and_total_modes(self, yard_events):
        rollups = build_daily_rollups(filter_events(yard_events, MARCH))
        assert efficiency_series(rollups, "avg")["minutes"].tolist() == [70, 23]
        assert efficiency_series(rollups, "total")["minutes"].tolist() == [210.0, 45.0]

    def test_unknown_mode(self, yard_events):
        with pytest.raises(ValueError):
            efficiency_series(build_daily_rollups(yard_events), "median")


# ===================================================================
# Pareto
# ===================================================================


class TestPareto:
    def test_ranking_and_cumulative(self, yard_events):
        pareto, total = build_pareto(filter_events(yard_events, MARCH))
        assert pareto["material_name"].tolist() == ["Iron Ore", "Coal", "Limestone"]
        assert pareto["tonnage"].tolist() == [25.0, 17.5, 2.5]
        assert pareto["cumulative_percentage"].tolist() == [56, 94, 100]
        assert total == 45.0

    def test_ties_keep_encounter_order(self):
        events = make_events([
            ["A", "Zinc", "2024-03-04 08:00", "", "1", "1,000"],
            ["B", "Alum", "2024-03-04 09:00", "", "1", "1,000"],
            ["C", "Bauxite", "2024-03-04 10:00", "", "1", "1,000"],
        ])
        pareto, _ = build_pareto(filter_events(events, MARCH))
        assert pareto["material_name"].tolist() == ["Zinc", "Alum", "Bauxite"]

    def test_top_ten_only(self):
        events = make_events([
            [f"T{i}", f"M{i:02d}", "2024-03-04 08:00", "", "1", str((i + 1) * 1000)]
            for i in range(12)
        ])
        pareto, total = build_pareto(filter_events(events, MARCH))
        assert len(pareto) == 10
        assert pareto["material_name"].iloc[0] == "M11"
        assert "M00" not in pareto["material_name"].tolist()
        assert total == sum(range(3, 13))

    def test_cumulative_non_decreasing_ending_at_100(self):
        events = make_events([
            [f"T{i}", f"M{i % 7}", "2024-03-04 08:00", "", "1", str(137 * (i + 3))]
            for i in range(30)
        ])
        pareto, _ = build_pareto(filter_events(events, MARCH))
        pcts = pareto["cumulative_percentage"].tolist()
        assert pcts == sorted(pcts)
        assert pcts[-1] == 100

    def test_zero_tonnage_gives_zero_percentages(self):
        events = make_events([["A", "Coal", "2024-03-04 08:00", "", "1", "0"]])
        pareto, total = build_pareto(filter_events(events, MARCH))
        assert pareto["cumulative_percentage"].tolist() == [0]
        assert total == 0.0

    def test_empty(self):
        pareto, total = build_pareto(build_truck_events([]))
        assert pareto.empty
        assert total == 0.0

    def test_share(self):
        assert pareto_share(45.0, 50.0) == 90.0
        assert pareto_share(0.0, 0.0) == 0.0


# ===================================================================
# Hourly flow
# ===================================================================


class TestHourlyFlow:
    def test_buckets_by_clock_hour(self, yard_events):
        flow = build_hourly_flow(filter_events(yard_events, MARCH))
        assert len(flow) == 24
        assert flow["label"].iloc[0] == "0h"
        counts = dict(zip(flow["hour"], flow["count"]))
        assert counts[6] == 1
        assert counts[7] == 1
        assert counts[9] == 1
        assert counts[13] == 1
        assert counts[18] == 1
        assert sum(counts.values()) == 5

    def test_spans(self, yard_events):
        flow = build_hourly_flow(filter_events(yard_events, MARCH))
        assert active_hour_spans(flow) == ("6h~9h", "13h~18h")

    def test_empty_spans(self):
        flow = build_hourly_flow(build_truck_events([]))
        assert flow["count"].sum() == 0
        assert active_hour_spans(flow) == ("--", "--")

    def test_am_only(self):
        events = make_events([["A", "Coal", "2024-03-04 11:59", "", "1", "1"]])
        flow = build_hourly_flow(filter_events(events, MARCH))
        assert active_hour_spans(flow) == ("11h~11h", "--")


# ===================================================================
# Monitor
# ===================================================================


class TestOnTimeRate:
    @pytest.mark.parametrize(
        "duration,benchmark,expected",
        [(0, 60, 100), (30, 60, 100), (60, 60, 100), (120, 60, 50), (90, 60, 67), (-1, 60, 100)],
    )
    def test_rates(self, duration, benchmark, expected):
        assert on_time_rate(duration, benchmark) == expected

    def test_never_above_100(self):
        assert all(on_time_rate(d, 60) <= 100 for d in range(0, 500, 7))

    def test_nan_duration_is_on_time(self):
        assert on_time_rate(float("nan"), 60) == 100


class TestMonitorView:
    def test_day_selection_and_order(self, yard_events):
        items, avg = build_monitor_view(yard_events, "2024-03-04", 60, 95)
        assert items["truck_id"].tolist() == ["T-03", "T-02", "T-01"]
        assert items["on_time_rate"].tolist() == [50, 100, 100]
        assert items["is_alert"].tolist() == [True, False, False]
        assert avg == 83

    def test_ignores_material_filter_and_range(self, yard_events):
        items, avg = build_monitor_view(yard_events, "2024-03-05", 60, 95)
        assert items["truck_id"].tolist() == ["T-05", "T-04"]
        assert avg == 100

    def test_zero_duration_is_fully_on_time(self, yard_events):
        items, _ = build_monitor_view(yard_events, "2024-03-05", 60, 95)
        row = items[items["truck_id"] == "T-04"].iloc[0]
        assert row["on_time_rate"] == 100
        assert not row["is_complete"]

    def test_load_percentage_capped(self, yard_events):
        items, _ = build_monitor_view(yard_events, "2024-03-04", 60, 95)
        assert items["load_percentage"].tolist() == [100.0, 50.0, 100.0]

    def test_ties_keep_feed_order(self):
        events = make_events([
            ["A", "Coal", "2024-03-04 08:00", "", "1", "1"],
            ["B", "Coal", "2024-03-04 08:00", "", "1", "1"],
        ])
        items, _ = build_monitor_view(events, "2024-03-04", 60, 95)
        assert items["truck_id"].tolist() == ["A", "B"]

    def test_no_events(self, yard_events):
        items, avg = build_monitor_view(yard_events, "2023-01-01", 60, 95)
        assert items.empty
        assert avg == 0

    def test_bad_date(self, yard_events):
        items, avg = build_monitor_view(yard_events, "someday", 60, 95)
        assert items.empty
        assert avg == 0


# ===================================================================
# End-to-end
# ===================================================================


class TestEndToEnd:
    def test_three_row_feed(self, sample_events):
        criteria = FilterCriteria("2024-01-09", "2024-01-10")
        filtered = filter_events(sample_events, criteria)
        rollups = build_daily_rollups(filtered)
        assert rollups["date"].tolist() == ["2024-01-09", "2024-01-10"]
        assert rollups["tonnage"].tolist() == [1.2, 0.8]
        assert summarise_range(rollups)["total_counts"] == 2
        assert isinstance(filtered["arrival_at"].iloc[0], pd.Timestamp)
