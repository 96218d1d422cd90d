"""Clock abstraction and calendar-day helpers.

Everything that needs "now" takes a clock so streak boundaries can be tested
deterministically. Calendar days are evaluated in the clock's zone, which is
the process's local zone unless one is given explicitly.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, tzinfo


class SystemClock:
    """Wall clock. Local time of the running process unless *tz* is given."""

    def __init__(self, tz: tzinfo | None = None):
        self.tz = tz

    def now(self) -> datetime:
        if self.tz is None:
            return datetime.now().astimezone()
        return datetime.now(self.tz)


class FixedClock:
    """Clock frozen at a given instant; tests move it explicitly."""

    def __init__(self, now: datetime):
        self._now = now
        self.tz = now.tzinfo

    def now(self) -> datetime:
        return self._now

    def set(self, now: datetime) -> None:
        self._now = now
        self.tz = now.tzinfo

    def advance(self, days: int = 0, hours: int = 0, minutes: int = 0) -> datetime:
        self._now = self._now + timedelta(days=days, hours=hours, minutes=minutes)
        return self._now


def day_of(ts: datetime, tz: tzinfo | None = None) -> date:
    """Calendar day of *ts* in zone *tz* (process-local when None).

    Naive timestamps are taken to already be local wall-clock time.
    """
    if ts.tzinfo is None:
        return ts.date()
    return ts.astimezone(tz).date()


def parse_ts(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing 'Z'."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)
