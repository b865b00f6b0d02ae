"""
Shared utilities for data ingestion: text cleaning, date normalisation,
shift-day calendar, numeric coercion.
"""

import logging
import math
import re
from typing import Any

import pandas as pd

from ..config import FACTORY_TIMEZONE, SHIFT_START_HOUR

logger = logging.getLogger(__name__)

_INVISIBLE_CHARS = re.compile("[\u200b-\u200d\ufeff]")
_YEAR_FIRST = re.compile(r"^(\d{4})[-/.](\d{1,2})[-/.](\d{1,2})")
_DAY_FIRST = re.compile(r"^(\d{1,2})[-/.](\d{1,2})[-/.](\d{4})")
_LEADING_FLOAT = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_DIGIT = re.compile(r"\d")


def clean_text(val: Any) -> str:
    """Strip zero-width characters and normalise non-breaking spaces."""
    if val is None:
        return ""
    s = _INVISIBLE_CHARS.sub("", str(val).strip())
    return s.replace("\u00a0", " ").strip()


def _time_parts(time_token: str) -> tuple[int, int]:
    """Hours and minutes of an ``H:M[:S]`` token; seconds are ignored.

    Non-numeric parts count as zero.
    """
    values = []
    for part in time_token.split(":")[:2]:
        try:
            values.append(int(part))
        except ValueError:
            values.append(0)
    while len(values) < 2:
        values.append(0)
    return values[0], values[1]


def _build_instant(year: str, month: str, day: str, time_token: str) -> pd.Timestamp | None:
    """Calendar instant from matched parts.

    Out-of-range parts roll over like a wall calendar: ``2024-02-30``
    becomes 2024-03-01 and hour 25 the next day's 01:00. Returns None
    only when the result falls outside the representable range.
    """
    try:
        hours, minutes = _time_parts(time_token)
        return (
            pd.Timestamp(year=int(year), month=1, day=1)
            + pd.DateOffset(months=int(month) - 1)
            + pd.Timedelta(days=int(day) - 1, hours=hours, minutes=minutes)
        )
    except (ValueError, OverflowError):
        logger.debug("Date parts out of range: %s-%s-%s %s", year, month, day, time_token)
        return None


def parse_instant(val: Any) -> pd.Timestamp | None:
    """Parse yard timestamp text into a naive factory wall-clock Timestamp.

    Year-first (``YYYY-M-D``) is tried before day-first (``D/M/YYYY``) so
    ISO-like text is never read as day/month. Anything else goes through
    pandas' generic parser, which only sees text containing a digit
    (placeholders such as "now" stay unparsed). Returns None for
    unparseable values; never raises.
    """
    text = clean_text(val)
    if not text:
        return None

    parts = text.split()
    date_part = parts[0]
    time_part = parts[1] if len(parts) > 1 else "00:00"

    match = _YEAR_FIRST.match(date_part)
    if match:
        return _build_instant(match.group(1), match.group(2), match.group(3), time_part)

    match = _DAY_FIRST.match(date_part)
    if match:
        return _build_instant(match.group(3), match.group(2), match.group(1), time_part)

    if not _DIGIT.search(text):
        logger.debug("Could not parse date value: %s", text)
        return None

    try:
        instant = pd.Timestamp(text)
    except (ValueError, TypeError, OverflowError):
        logger.debug("Could not parse date value: %s", text)
        return None
    if pd.isna(instant):
        return None
    if instant.tzinfo is not None:
        instant = instant.tz_convert(FACTORY_TIMEZONE).tz_localize(None)
    return instant


def shift_date_of(instant: pd.Timestamp) -> str:
    """Return the ``YYYY-MM-DD`` shift day containing ``instant``.

    Instants before 07:00 belong to the previous calendar day. Only the
    wall-clock components are used, no timezone conversion.
    """
    if instant.hour < SHIFT_START_HOUR:
        instant = instant - pd.Timedelta(days=1)
    return f"{instant.year:04d}-{instant.month:02d}-{instant.day:02d}"


def shift_start(shift_day: str) -> pd.Timestamp | None:
    """07:00 on the given shift day, or None if the day does not parse."""
    base = parse_instant(shift_day)
    if base is None:
        return None
    return base.normalize() + pd.Timedelta(hours=SHIFT_START_HOUR)


def factory_now() -> pd.Timestamp:
    """Current wall-clock time at the factory, as a naive Timestamp."""
    return pd.Timestamp.now(tz=FACTORY_TIMEZONE).tz_localize(None)


def parse_number(val: Any) -> float:
    """Coerce locale-formatted numeric text to float.

    Thousands separators are dropped ("1,894" -> 1894.0). Parsing takes the
    leading numeric prefix, so "12kg" reads as 12. Empty or invalid input
    yields 0.0; never raises and never returns NaN.
    """
    if val is None:
        return 0.0
    if isinstance(val, (int, float)):
        num = float(val)
        return num if math.isfinite(num) else 0.0

    s = str(val).replace(",", "")
    match = _LEADING_FLOAT.match(s)
    if not match:
        return 0.0
    num = float(match.group(0))
    return num if math.isfinite(num) else 0.0
