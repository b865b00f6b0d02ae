"""
Loader for the published truck-yard CSV feed.

The feed is a spreadsheet export republished on a timer. Cells may hold
quoted commas, doubled quotes and embedded newlines; line endings are mixed
CRLF/LF depending on which workstation last edited the sheet.
"""

import logging
import time

import requests

from ..config import FETCH_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

_QUOTE = '"'


def decode_csv(text: str) -> list[list[str]]:
    """Split delimited text into rows of string cells.

    Single left-to-right scan. Inside quotes a doubled quote is a literal
    quote and a lone quote closes the field; outside quotes ``,`` ends a
    cell and ``\\n`` / ``\\r`` end a row (``\\r\\n`` counts once). Rows may
    differ in length. Malformed quoting never raises, the quote simply
    toggles the quoted state.
    """
    rows: list[list[str]] = []
    row: list[str] = []
    cell: list[str] = []
    in_quotes = False
    i = 0
    n = len(text)

    while i < n:
        char = text[i]
        next_char = text[i + 1] if i + 1 < n else ""
        if in_quotes:
            if char == _QUOTE and next_char == _QUOTE:
                cell.append(_QUOTE)
                i += 1
            elif char == _QUOTE:
                in_quotes = False
            else:
                cell.append(char)
        elif char == _QUOTE:
            in_quotes = True
        elif char == ",":
            row.append("".join(cell))
            cell = []
        elif char in ("\n", "\r"):
            row.append("".join(cell))
            rows.append(row)
            row = []
            cell = []
            if char == "\r" and next_char == "\n":
                i += 1
        else:
            cell.append(char)
        i += 1

    if cell or row:
        row.append("".join(cell))
        rows.append(row)

    return rows


def _encode_cell(value: str) -> str:
    if any(c in value for c in (",", _QUOTE, "\n", "\r")):
        return _QUOTE + value.replace(_QUOTE, _QUOTE * 2) + _QUOTE
    return value


def encode_csv(rows: list[list[str]]) -> str:
    """Write rows using the quoting convention understood by decode_csv."""
    return "".join(",".join(_encode_cell(str(c)) for c in row) + "\n" for row in rows)


def cache_busted_url(url: str, now_ms: int | None = None) -> str:
    """Append a ``cb=<epoch millis>`` query parameter."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}cb={now_ms}"


def _decode_body(response: requests.Response) -> str:
    try:
        text = response.content.decode("utf-8-sig")
    except UnicodeDecodeError:
        encoding = response.apparent_encoding or "latin-1"
        logger.warning("Feed is not valid UTF-8, decoding as %s", encoding)
        text = response.content.decode(encoding, errors="replace")
    return text


def fetch_csv_text(
    url: str,
    session: requests.Session | None = None,
    timeout: float = FETCH_TIMEOUT_SECONDS,
) -> str:
    """GET the feed and return its text.

    Raises
    ------
    requests.RequestException on transport failure or a non-2xx status.
    """
    http = session if session is not None else requests.Session()
    target = cache_busted_url(url)
    response = http.get(target, timeout=timeout)
    response.raise_for_status()
    text = _decode_body(response)
    logger.info("Fetched %d bytes from %s", len(response.content), url)
    return text
