"""
Simulated feed generator for the truck-yard dashboard.

Produces CSV text shaped like the published yard export (Chinese headers,
thousands-separated weights, mixed date formats, the odd row without a
material). All values are synthetic — no real operational data is used.
"""

import numpy as np
import pandas as pd

from .loaders.csv_feed import encode_csv

# ---------------------------------------------------------------------------
# Typical yard parameters (realistic ranges)
# ---------------------------------------------------------------------------
FEED_HEADERS = ["車號", "原材料", "進場時間", "作業結束", "作業總時間", "重量(kg)"]

_MATERIALS = {
    # name: (mean weight kg, std, mean handling minutes)
    "Iron Ore": (28_000, 3_000, 55),
    "Coking Coal": (25_000, 2_500, 48),
    "Limestone": (22_000, 2_000, 40),
    "Scrap Steel": (18_000, 4_000, 70),
    "Dolomite": (20_000, 2_000, 42),
    "Ferro Alloy": (8_000, 1_500, 35),
    "Refractory Brick": (6_000, 1_000, 30),
}

_TRUCKS = [f"MH-12-{n:04d}" for n in (1203, 2311, 4410, 5521, 6632, 7745, 8856, 9967)]

# Arrivals cluster around the two shift handovers
_HOUR_WEIGHTS = np.array(
    [1, 1, 1, 1, 1, 2, 3, 6, 8, 8, 7, 6, 4, 5, 7, 8, 7, 6, 4, 3, 2, 2, 1, 1],
    dtype=float,
)


def _format_arrival(ts: pd.Timestamp, day_first: bool) -> str:
    if day_first:
        return ts.strftime("%d/%m/%Y %H:%M")
    return ts.strftime("%Y-%m-%d %H:%M")


def generate_truck_events(
    start_day: str = "2026-01-01",
    days: int = 14,
    trucks_per_day: int = 40,
    seed: int = 42,
) -> list[list[str]]:
    """Generate simulated yard rows (header first) for ``days`` shift days."""
    rng = np.random.default_rng(seed)
    materials = list(_MATERIALS)
    hour_p = _HOUR_WEIGHTS / _HOUR_WEIGHTS.sum()

    rows = [list(FEED_HEADERS)]
    for day in pd.date_range(start_day, periods=days, freq="D"):
        n = max(1, int(rng.poisson(trucks_per_day)))
        for _ in range(n):
            hour = int(rng.choice(24, p=hour_p))
            minute = int(rng.integers(0, 60))
            # Hours before 07:00 belong to the next calendar day of this shift
            arrival = day + pd.Timedelta(days=1 if hour < 7 else 0, hours=hour, minutes=minute)

            material = materials[int(rng.integers(0, len(materials)))]
            mean_kg, std_kg, mean_min = _MATERIALS[material]
            weight = max(500.0, rng.normal(mean_kg, std_kg))
            minutes = max(5, int(rng.gamma(4.0, mean_min / 4.0)))

            still_in_yard = rng.random() < 0.05
            departure = "" if still_in_yard else (
                arrival + pd.Timedelta(minutes=minutes)
            ).strftime("%Y-%m-%d %H:%M")

            rows.append([
                _TRUCKS[int(rng.integers(0, len(_TRUCKS)))],
                "" if rng.random() < 0.02 else material,
                _format_arrival(arrival, day_first=rng.random() < 0.3),
                departure,
                "" if still_in_yard else str(minutes),
                f"{weight:,.0f}",
            ])

    return rows


def generate_truck_feed(
    start_day: str = "2026-01-01",
    days: int = 14,
    trucks_per_day: int = 40,
    seed: int = 42,
) -> str:
    """Simulated yard export as CSV text."""
    return encode_csv(generate_truck_events(start_day, days, trucks_per_day, seed))
