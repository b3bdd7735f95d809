"""
Clocks injected into the workflows so date boundaries are deterministic.

`now()` and `today()` are venue wall-clock time, the frame booking dates and
start times are entered in. `utcnow()` is used for stored created_at and
updated_at timestamps, matching the column defaults in turfbook.models.
"""

from datetime import date, datetime, timedelta

from flask import current_app


class SystemClock:
    """Wall-clock time of the server."""

    def now(self) -> datetime:
        return datetime.now()

    def today(self) -> date:
        return self.now().date()

    def utcnow(self) -> datetime:
        return datetime.utcnow()


class FixedClock:
    """A clock frozen at a given wall-clock instant; `advance_to` moves it."""

    def __init__(self, now: datetime, utc_offset: timedelta = timedelta(0)):
        self._now = now
        self.utc_offset = utc_offset

    def now(self) -> datetime:
        return self._now

    def today(self) -> date:
        return self._now.date()

    def utcnow(self) -> datetime:
        return self._now - self.utc_offset

    def advance_to(self, now: datetime):
        self._now = now


def get_clock():
    """Return the clock configured on the current application."""
    return current_app.extensions.get('turfbook.clock') or SystemClock()
