"""
Dashboard settings and filter context.

Settings are persisted as a small JSON blob; everything the aggregation
functions need is passed in explicitly as one of these values.
"""

import json
import logging
import math
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path

import pandas as pd

from .config import (
    CHART_TYPE_OPTIONS,
    DEFAULT_CHART_TYPES,
    DEFAULT_LOOKBACK_DAYS,
    DEFAULT_SETTINGS,
    SETTINGS_FILE,
)
from .loaders.utils import factory_now, shift_date_of

logger = logging.getLogger(__name__)

_SCALAR_TYPES = {
    "refresh_rate_seconds": int,
    "benchmark_minutes": float,
    "warn_threshold_percent": float,
    "warn_color": str,
    "animation_enabled": bool,
    "animation_period_seconds": int,
    "target_hours": float,
}

# Timer periods, must be positive
_POSITIVE_KEYS = ("refresh_rate_seconds", "animation_period_seconds")


def _coerce(value, kind):
    """Convert a stored value to ``kind``, or None if it does not fit."""
    if kind is bool or kind is str:
        return value if isinstance(value, kind) else None
    if isinstance(value, bool):
        return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(num):
        return None
    return int(num) if kind is int else num


@dataclass(frozen=True)
class DashboardSettings:
    refresh_rate_seconds: int = DEFAULT_SETTINGS["refresh_rate_seconds"]
    benchmark_minutes: float = DEFAULT_SETTINGS["benchmark_minutes"]
    warn_threshold_percent: float = DEFAULT_SETTINGS["warn_threshold_percent"]
    warn_color: str = DEFAULT_SETTINGS["warn_color"]
    animation_enabled: bool = DEFAULT_SETTINGS["animation_enabled"]
    animation_period_seconds: int = DEFAULT_SETTINGS["animation_period_seconds"]
    target_hours: float = DEFAULT_SETTINGS["target_hours"]
    chart_types: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_CHART_TYPES))

    @classmethod
    def from_dict(cls, data: dict) -> "DashboardSettings":
        """Build settings from a stored blob.

        Unknown keys are ignored. Missing keys, values of the wrong type
        and unknown chart types fall back to the defaults.
        """
        known = {}
        for key, kind in _SCALAR_TYPES.items():
            if key not in data:
                continue
            value = _coerce(data[key], kind)
            if value is None or (key in _POSITIVE_KEYS and value <= 0):
                logger.warning("Ignoring setting %s=%r, using default", key, data[key])
                continue
            known[key] = value

        chart_types = dict(DEFAULT_CHART_TYPES)
        stored = data.get("chart_types") or {}
        if isinstance(stored, dict):
            for chart, kind in stored.items():
                if chart in chart_types and kind in CHART_TYPE_OPTIONS:
                    chart_types[chart] = kind
                else:
                    logger.warning("Ignoring chart type %r for %r", kind, chart)

        return cls(**known, chart_types=chart_types)

    def to_dict(self) -> dict:
        return asdict(self)


def load_settings(path: Path | str = SETTINGS_FILE) -> DashboardSettings:
    """Read the settings blob, falling back to defaults if absent or corrupt."""
    path = Path(path)
    if not path.exists():
        return DashboardSettings()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        logger.warning("Could not read settings from %s, using defaults", path)
        return DashboardSettings()
    if not isinstance(data, dict):
        logger.warning("Settings file %s is not an object, using defaults", path)
        return DashboardSettings()
    return DashboardSettings.from_dict(data)


def save_settings(settings: DashboardSettings, path: Path | str = SETTINGS_FILE) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(settings.to_dict(), indent=2), encoding="utf-8")
    logger.info("Saved settings to %s", path)


def sync_benchmark_to_average(settings: DashboardSettings, summary: dict) -> DashboardSettings:
    """Use the range's average processing time as the new benchmark.

    A range without events leaves the benchmark unchanged.
    """
    if not summary.get("total_counts"):
        logger.warning("No events in range, keeping benchmark %s", settings.benchmark_minutes)
        return settings
    return replace(settings, benchmark_minutes=summary["avg_minutes_per_event"])


@dataclass(frozen=True)
class FilterCriteria:
    """Shift-day range (inclusive, ``YYYY-MM-DD``) plus material substring."""

    start_date: str
    end_date: str
    material: str = ""


def _iso(ts: pd.Timestamp) -> str:
    return f"{ts.year:04d}-{ts.month:02d}-{ts.day:02d}"


def default_filter(now: pd.Timestamp | None = None) -> FilterCriteria:
    """The last DEFAULT_LOOKBACK_DAYS calendar days up to today, factory time."""
    now = now if now is not None else factory_now()
    start = now - pd.Timedelta(days=DEFAULT_LOOKBACK_DAYS)
    return FilterCriteria(start_date=_iso(start), end_date=_iso(now))


def default_monitor_date(now: pd.Timestamp | None = None) -> str:
    """Shift day currently in progress at the factory."""
    now = now if now is not None else factory_now()
    return shift_date_of(now)
