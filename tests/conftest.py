"""Shared fixtures for the truck-yard pipeline tests."""

import pytest

from truckyard_dashboard.loaders.csv_feed import decode_csv
from truckyard_dashboard.settings import DashboardSettings
from truckyard_dashboard.transforms import build_truck_events

ENGLISH_FEED = (
    "Truck No,Material,Arrival Time,End Time,Total Time (min),Weight (kg)\r\n"
    "T-01,Iron Ore,2024-01-10 06:30,2024-01-10 07:15,45,\"1,200\"\r\n"
    "T-02,Coal,2024-01-10 08:00,2024-01-10 08:30,30,800\r\n"
    "T-03,,2024-01-10 09:00,2024-01-10 09:20,20,500\r\n"
)


def make_events(rows: list[list[str]]):
    header = ["Truck No", "Material", "Arrival Time", "End Time", "Total Time", "Weight"]
    return build_truck_events([header] + rows)


@pytest.fixture
def english_feed() -> str:
    return ENGLISH_FEED


@pytest.fixture
def sample_events():
    return build_truck_events(decode_csv(ENGLISH_FEED))


@pytest.fixture
def yard_events():
    """Two shift days, four materials, one unparseable arrival."""
    return make_events([
        ["T-01", "Iron Ore", "2024-03-04 07:00", "2024-03-04 08:00", "60", "20,000"],
        ["T-02", "Coal", "2024-03-04 13:15", "2024-03-04 13:45", "30", "10,000"],
        ["T-03", "Iron Ore", "2024-03-05 06:59", "2024-03-05 08:00", "120", "5,000"],
        ["T-04", "Limestone", "05/03/2024 09:30", "", "0", "2,500"],
        ["T-05", "Coal", "2024-03-05 18:00", "2024-03-05 19:00", "45", "7,500"],
        ["T-06", "Dolomite", "not a date", "", "10", "1,000"],
    ])


@pytest.fixture
def settings() -> DashboardSettings:
    return DashboardSettings()
