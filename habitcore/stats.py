"""Rolling completion statistics and dashboard summary for HabitPulse.

Pure functions over snapshots of habits and their completion logs; nothing
here mutates what it is given.
"""

from __future__ import annotations

from datetime import datetime, timedelta, tzinfo
from typing import Iterable, Mapping

from habitcore.clock import day_of
from habitcore.errors import ValidationError
from habitcore.models import CompletionEvent, DashboardSummary, DayCount, Habit, RollingStats
from habitcore.streaks import completed_on, live_streak


DEFAULT_WINDOW_DAYS = 30
DAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


def compute_rolling_stats(
    habits: Iterable[Habit],
    events_by_habit: Mapping[str, Iterable[CompletionEvent]],
    window_days: int = DEFAULT_WINDOW_DAYS,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> RollingStats:
    """Per-day completion counts over the trailing window and the overall rate.

    Buckets are calendar days across all habits, oldest first, ending at
    today inclusive. The rate is events in window / (habits x window days),
    0.0 when there are no habits.
    """
    if not isinstance(window_days, int) or isinstance(window_days, bool) or window_days < 1:
        raise ValidationError("window_days must be a positive integer")
    if now is None:
        now = datetime.now().astimezone()

    habit_ids = [h.id for h in habits]
    today = day_of(now, tz)
    start = today - timedelta(days=window_days - 1)
    buckets = {start + timedelta(days=i): 0 for i in range(window_days)}

    for habit_id in habit_ids:
        for event in events_by_habit.get(habit_id, ()):
            if event.completed_at is None:
                continue
            d = day_of(event.completed_at, tz)
            if d in buckets:
                buckets[d] += 1

    per_day = [DayCount(day=d, completed=n) for d, n in buckets.items()]
    total = sum(buckets.values())
    rate = 0.0
    if habit_ids:
        rate = min(1.0, total / (len(habit_ids) * window_days))
    return RollingStats(per_day=per_day, completion_rate=rate)


def dashboard_summary(
    habits: list[Habit],
    events_by_habit: Mapping[str, list[CompletionEvent]],
    now: datetime,
    tz: tzinfo | None = None,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> DashboardSummary:
    """Headline numbers and the trailing-week chart shown on the dashboard.

    active_days counts days with any completion over the last *window_days*.
    """
    summary = DashboardSummary(total_habits=len(habits))
    if not habits:
        summary.weekly = _weekly(RollingStats(per_day=[]), now, tz)
        return summary

    summary.completed_today = sum(
        1 for h in habits if completed_on(events_by_habit.get(h.id, []), now, tz)
    )
    summary.completion_pct_today = round(summary.completed_today / len(habits) * 100)
    summary.current_streak = max(live_streak(h, now, tz) for h in habits)
    summary.longest_streak = max(h.best_streak for h in habits)

    month = compute_rolling_stats(habits, events_by_habit, window_days, now, tz)
    summary.active_days = sum(1 for d in month.per_day if d.completed > 0)
    summary.weekly = _weekly(month, now, tz)
    return summary


def _weekly(month: RollingStats, now: datetime, tz: tzinfo | None) -> list[dict]:
    counts = {d.day: d.completed for d in month.per_day}
    today = day_of(now, tz)
    week = []
    for offset in range(6, -1, -1):
        d = today - timedelta(days=offset)
        week.append({
            "name": DAY_NAMES[d.weekday()],
            "date": d.isoformat(),
            "completed": counts.get(d, 0),
        })
    return week
