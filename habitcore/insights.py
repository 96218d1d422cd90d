"""Canned insight and coach text for HabitPulse.

Nothing here is domain logic: these are presentation strategies that read
snapshots and pick from fixed string pools.
"""

from __future__ import annotations

import random
import uuid
from datetime import datetime, timedelta
from typing import Iterable, Iterator

from habitcore.errors import ValidationError
from habitcore.models import CompletionEvent, Habit, Insight


DASHBOARD_INSIGHTS = [
    "You're most consistent with your habits on weekdays. Consider setting weekend-specific reminders to maintain your streak.",
    "Your meditation habit has the longest current streak. This consistency might be helping with other habits too!",
    "You tend to complete habits more often in the morning. Try scheduling new habits during this productive time.",
    "Based on your patterns, you might find it easier to build new habits by linking them to existing ones.",
]

COACH_RESPONSES = {
    "greeting": [
        "Hello! I'm your habit coach. How can I help you today?",
        "Welcome! I'm here to help you build better habits. What's on your mind?",
        "Hi there! Ready to work on your habits? Let me know what you'd like to discuss.",
    ],
    "motivation": [
        "Remember, small steps lead to big changes. Keep going!",
        "You're doing great! Consistency is key to forming lasting habits.",
        "Every habit streak starts with a single day. You've got this!",
    ],
    "tips": [
        "Try linking new habits to existing ones - this is called habit stacking.",
        "Make your habits obvious, attractive, easy, and satisfying.",
        "Start with a habit so small you can't say no to it.",
        "Track your progress - what gets measured gets managed.",
        "Design your environment to support your habits.",
    ],
}


def habit_insight(
    habit: Habit,
    events: Iterable[CompletionEvent],
    now: datetime,
    window_days: int = 30,
) -> Insight:
    """Completion-rate insight for one habit over the trailing window.

    Rate is recent completions / window_days as a percentage:
    >=80 great, >=50 good progress, anything lower is treated as a struggle.
    """
    since = now - timedelta(days=window_days)
    recent = [
        e for e in events
        if e.habit_id == habit.id and e.completed_at is not None
        and e.completed_at.timestamp() >= since.timestamp()
    ]
    rate = len(recent) / window_days * 100

    if rate >= 80:
        content = (
            f"Great job maintaining {habit.name}! You've been very consistent. "
            "Consider increasing your target or adding a related habit."
        )
    elif rate >= 50:
        content = (
            f"You're making good progress with {habit.name}. "
            "Try to identify what helps you succeed and apply it on harder days."
        )
    else:
        content = (
            f"It seems {habit.name} has been challenging. "
            "Consider adjusting your target or scheduling it at a different time."
        )

    return Insight(
        id=uuid.uuid4().hex,
        habit_id=habit.id,
        insight_type="completion_analysis",
        content=content,
        created_at=now,
    )


class CannedInsights:
    """Finite insight sequence; every iteration starts again from the top."""

    def __init__(self, pool: list[str] | None = None):
        self.pool = list(DASHBOARD_INSIGHTS if pool is None else pool)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self.pool))

    def __len__(self) -> int:
        return len(self.pool)


class Coach:
    """Keyword-driven canned replies. Pass a seeded Random for repeatable picks."""

    def __init__(self, rng: random.Random | None = None, responses: dict[str, list[str]] | None = None):
        self.rng = rng or random.Random()
        self.responses = responses or COACH_RESPONSES

    def greet(self) -> str:
        return self.rng.choice(self.responses["greeting"])

    def reply(self, message: str) -> str:
        if not isinstance(message, str) or not message.strip():
            raise ValidationError("message must be a non-empty string")
        pool = "motivation" if "motivat" in message.lower() else "tips"
        return self.rng.choice(self.responses[pool])
