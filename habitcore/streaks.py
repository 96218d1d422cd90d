"""Streak computation from a habit's completion log.

Streaks are counted in calendar days regardless of the habit's declared
frequency. Multiple completions on one day count once.
"""

from __future__ import annotations

from datetime import datetime, timedelta, tzinfo
from typing import Iterable

from habitcore.clock import day_of
from habitcore.models import CompletionEvent, Habit, StreakResult


def compute_streak(
    events: Iterable[CompletionEvent],
    previous_best: int,
    now: datetime,
    tz: tzinfo | None = None,
) -> StreakResult:
    """Current streak, ratcheted best streak and last completion for one habit.

    The current streak ends at the most recent completed day and walks back
    one day at a time until the first missing day. Events dated after
    today's calendar day are ignored.
    """
    today = day_of(now, tz)
    dated = [
        e for e in events
        if e.completed_at is not None and day_of(e.completed_at, tz) <= today
    ]
    if not dated:
        return StreakResult(current_streak=0, best_streak=previous_best, last_completed=None)

    # timestamp() treats naive values as local time, so mixed logs still order.
    dated.sort(key=lambda e: e.completed_at.timestamp(), reverse=True)
    days = sorted({day_of(e.completed_at, tz) for e in dated}, reverse=True)

    current = 1
    for newer, older in zip(days, days[1:]):
        if newer - older != timedelta(days=1):
            break
        current += 1

    return StreakResult(
        current_streak=current,
        best_streak=max(previous_best, current),
        last_completed=dated[0].completed_at,
    )


def completed_on(events: Iterable[CompletionEvent], now: datetime, tz: tzinfo | None = None) -> bool:
    """True if any event falls on now's calendar day."""
    today = day_of(now, tz)
    return any(e.completed_at is not None and day_of(e.completed_at, tz) == today for e in events)


def live_streak(habit: Habit, now: datetime, tz: tzinfo | None = None) -> int:
    """Streak as it should be displayed right now.

    The stored streak stays alive while the habit was last completed today or
    yesterday; after that it shows as 0 until the next completion restarts it.
    Never writes back to the habit.
    """
    if habit.last_completed is None:
        return 0
    gap = (day_of(now, tz) - day_of(habit.last_completed, tz)).days
    return habit.current_streak if 0 <= gap <= 1 else 0
