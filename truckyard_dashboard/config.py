"""
Configuration: feed location, column keyword table, shift calendar, defaults.

COLUMN_KEYWORDS maps each logical record field to the header keywords it may
appear under in the yard export (Chinese and English headers both occur).
"""

import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Feed + persistence locations (overridable through the environment)
# ---------------------------------------------------------------------------
CSV_URL = os.environ.get(
    "TRUCKYARD_CSV_URL",
    "https://docs.google.com/spreadsheets/d/e/truckyard-feed/pub?output=csv",
)
SETTINGS_FILE = Path(
    os.environ.get(
        "TRUCKYARD_SETTINGS_FILE",
        str(Path.home() / ".truckyard_dashboard.json"),
    )
)

FETCH_TIMEOUT_SECONDS = 30

# ---------------------------------------------------------------------------
# Factory calendar
# ---------------------------------------------------------------------------
FACTORY_TIMEZONE = "Asia/Kolkata"

# A shift day runs from 07:00 to 06:59:59 the following calendar day.
SHIFT_START_HOUR = 7

DEFAULT_LOOKBACK_DAYS = 30

# ---------------------------------------------------------------------------
# Column keyword registry
# ---------------------------------------------------------------------------
# First header containing any keyword (case-insensitive) wins.
COLUMN_KEYWORDS: dict[str, list[str]] = {
    "truck_id": ["車號", "車牌", "Truck"],
    "material_name": ["原材料", "品名", "Material"],
    "arrival_text": ["進場", "Arrival"],
    "departure_text": ["結束", "作業完成", "End"],
    "duration_minutes": ["作業總時間", "總時間", "Duration", "Total Time"],
    "weight_kg": ["重量", "Weight", "(t)"],
}

# Record schema produced by transforms.build_truck_events
TRUCK_EVENT_COLUMNS = [
    "truck_id",
    "material_name",
    "arrival_text",
    "departure_text",
    "duration_minutes",
    "weight_kg",
]

UNKNOWN_TRUCK_ID = "N/A"

# ---------------------------------------------------------------------------
# Aggregation constants
# ---------------------------------------------------------------------------
PARETO_TOP_N = 10
HOURS_PER_DAY = 24
NOON_HOUR = 12
KG_PER_TONNE = 1000

# ---------------------------------------------------------------------------
# Dashboard settings defaults
# ---------------------------------------------------------------------------
CHART_TYPE_OPTIONS = ("bar", "area", "line", "stepAfter", "radar", "composed")

DEFAULT_CHART_TYPES: dict[str, str] = {
    "pareto": "composed",
    "tonnage": "area",
    "frequency": "bar",
    "efficiency": "stepAfter",
    "flow": "radar",
}

DEFAULT_SETTINGS: dict = {
    "refresh_rate_seconds": 600,
    "benchmark_minutes": 60,
    "warn_threshold_percent": 95,
    "warn_color": "#ef4444",
    "animation_enabled": False,
    "animation_period_seconds": 30,
    "target_hours": 10,
    "chart_types": DEFAULT_CHART_TYPES,
}

EFFICIENCY_MODES = ("avg", "total")

# ---------------------------------------------------------------------------
# AI summary service
# ---------------------------------------------------------------------------
AI_API_KEY_ENV = "GEMINI_API_KEY"
AI_MODEL = os.environ.get("TRUCKYARD_AI_MODEL", "gemini-2.0-flash")
AI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
AI_RECORD_LIMIT = 50
AI_TIMEOUT_SECONDS = 60
AI_FALLBACK_MESSAGE = (
    "Failed to generate AI insights. Please check your connection or API key."
)
