"""Data ingestion loaders for the truck-yard CSV feed."""

from .csv_feed import decode_csv, encode_csv, fetch_csv_text
from .columns import resolve_columns, missing_columns
from .utils import parse_instant, parse_number, shift_date_of, shift_start
from .utils import clean_text, factory_now

__all__ = [
    "decode_csv",
    "encode_csv",
    "fetch_csv_text",
    "resolve_columns",
    "missing_columns",
    "parse_instant",
    "parse_number",
    "shift_date_of",
    "shift_start",
    "clean_text",
    "factory_now",
]
