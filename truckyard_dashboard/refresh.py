"""
Periodic re-fetch of the yard feed.

FeedRefresher owns the current record snapshot and replaces it wholesale on
every successful fetch. RefreshScheduler is a countdown driven by explicit
ticks, so it can run under a sleep loop, a UI rerun, or a test.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

import pandas as pd
import requests

from .config import CSV_URL
from .loaders.csv_feed import decode_csv, fetch_csv_text
from .transforms import build_truck_events, empty_events

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Snapshot:
    events: pd.DataFrame = field(default_factory=empty_events)
    version: int = 0
    fetched_at: pd.Timestamp | None = None


class FeedRefresher:
    """Fetches the feed and swaps in a new snapshot.

    A failed fetch (transport or parse) is logged and leaves the previous
    snapshot in place.
    """

    def __init__(
        self,
        url: str = CSV_URL,
        session: requests.Session | None = None,
        fetch: Callable[[str], str] | None = None,
    ):
        self.url = url
        self.session = session
        self._fetch = fetch
        self._snapshot = Snapshot()
        self.in_flight = False
        self.last_error: Exception | None = None

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    def _get_text(self) -> str:
        if self._fetch is not None:
            return self._fetch(self.url)
        return fetch_csv_text(self.url, session=self.session)

    def load_text(self, text: str) -> bool:
        """Decode and build records from feed text, swapping the snapshot.

        Feeds without data rows are ignored and the current snapshot kept.
        """
        rows = decode_csv(text)
        if len(rows) <= 1:
            logger.warning("Feed returned %d rows, keeping snapshot v%d", len(rows), self._snapshot.version)
            return False

        events = build_truck_events(rows)
        self._snapshot = Snapshot(
            events=events,
            version=self._snapshot.version + 1,
            fetched_at=pd.Timestamp.now(),
        )
        logger.info("Snapshot v%d with %d events", self._snapshot.version, len(events))
        return True

    def refresh(self) -> bool:
        """Fetch once. Returns True if the snapshot was replaced."""
        if self.in_flight:
            logger.debug("Refresh already in flight, skipping")
            return False

        self.in_flight = True
        try:
            text = self._get_text()
            swapped = self.load_text(text)
            self.last_error = None
            return swapped
        except Exception as e:
            self.last_error = e
            logger.exception("Feed refresh failed, keeping snapshot v%d", self._snapshot.version)
            return False
        finally:
            self.in_flight = False

    def bump_version(self) -> int:
        """Mark the current snapshot as changed, e.g. after new settings."""
        self._snapshot = Snapshot(
            events=self._snapshot.events,
            version=self._snapshot.version + 1,
            fetched_at=self._snapshot.fetched_at,
        )
        return self._snapshot.version


class RefreshScheduler:
    """Countdown that fires ``on_trigger`` every ``interval_seconds``.

    Ticks do nothing while paused or while ``is_busy()`` reports a fetch in
    flight; the remaining countdown is kept across pauses.
    """

    def __init__(
        self,
        interval_seconds: float,
        on_trigger: Callable[[], object],
        is_busy: Callable[[], bool] | None = None,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.interval = float(interval_seconds)
        self.remaining = float(interval_seconds)
        self.on_trigger = on_trigger
        self.is_busy = is_busy or (lambda: False)
        self.paused = False
        self.triggers = 0

    @property
    def suspended(self) -> bool:
        return self.paused or bool(self.is_busy())

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    def toggle_pause(self) -> bool:
        self.paused = not self.paused
        return self.paused

    def set_interval(self, interval_seconds: float) -> None:
        """Change the period and restart the countdown."""
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.interval = float(interval_seconds)
        self.remaining = float(interval_seconds)

    def tick(self, seconds: float = 1.0) -> bool:
        """Advance the countdown. Returns True if the trigger fired."""
        if self.suspended:
            return False

        self.remaining -= seconds
        if self.remaining > 0:
            return False

        self.remaining = self.interval
        self.triggers += 1
        try:
            self.on_trigger()
        except Exception:
            logger.exception("Scheduled refresh raised; schedule continues")
        return True

    def run(
        self,
        max_ticks: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
        step: float = 1.0,
    ) -> None:
        """Tick once per ``step`` seconds until ``max_ticks`` (forever if None)."""
        ticks = 0
        while max_ticks is None or ticks < max_ticks:
            sleep(step)
            self.tick(step)
            ticks += 1
