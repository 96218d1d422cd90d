"""Typed dataclasses for the HabitPulse data model.

All persisted models use from_dict/to_dict for JSON serialization.
Keys are snake_case on disk. Unknown keys are ignored; missing keys use
defaults. Timestamps are stored as ISO-8601 strings.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date, datetime
from typing import Any

from habitcore.clock import parse_ts
from habitcore.errors import ValidationError


FREQUENCIES = ("daily", "weekly", "monthly")
DEFAULT_COLOR = "#4F46E5"
DEFAULT_ICON = "✨"


def _ts(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return parse_ts(str(value))


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


# ── Habits ────────────────────────────────────────────────────


@dataclass
class Habit:
    id: str = ""
    user_id: str = ""
    name: str = ""
    description: str = ""
    frequency: str = "daily"  # daily, weekly, monthly
    target: int = 1  # times per frequency period
    color: str = DEFAULT_COLOR
    icon: str = DEFAULT_ICON
    created_at: datetime | None = None
    # derived from the completion log
    current_streak: int = 0
    best_streak: int = 0
    last_completed: datetime | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Habit:
        return cls(
            id=str(d.get("id", "")),
            user_id=str(d.get("user_id", "")),
            name=str(d.get("name", "")),
            description=str(d.get("description", "") or ""),
            frequency=str(d.get("frequency", "daily")),
            target=int(d.get("target", 1)),
            color=str(d.get("color", DEFAULT_COLOR)),
            icon=str(d.get("icon", DEFAULT_ICON)),
            created_at=_ts(d.get("created_at")),
            current_streak=int(d.get("current_streak", 0) or 0),
            best_streak=int(d.get("best_streak", 0) or 0),
            last_completed=_ts(d.get("last_completed")),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "description": self.description,
            "frequency": self.frequency,
            "target": self.target,
            "color": self.color,
            "icon": self.icon,
            "created_at": _iso(self.created_at),
            "current_streak": self.current_streak,
            "best_streak": self.best_streak,
        }
        if self.last_completed:
            d["last_completed"] = _iso(self.last_completed)
        return d


@dataclass
class CompletionEvent:
    id: str = ""
    habit_id: str = ""
    completed_at: datetime | None = None
    note: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> CompletionEvent:
        # Older records used "notes".
        note = d.get("note", d.get("notes"))
        return cls(
            id=str(d.get("id", "")),
            habit_id=str(d.get("habit_id", "")),
            completed_at=_ts(d.get("completed_at")),
            note=str(note) if note else None,
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "habit_id": self.habit_id,
            "completed_at": _iso(self.completed_at),
        }
        if self.note:
            d["note"] = self.note
        return d


# ── Users ─────────────────────────────────────────────────────


@dataclass
class NotificationPreferences:
    email: bool = True
    push: bool = False

    @classmethod
    def from_dict(cls, d: dict[str, Any] | None) -> NotificationPreferences:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(email=bool(d.get("email", True)), push=bool(d.get("push", False)))

    def to_dict(self) -> dict[str, Any]:
        return {"email": self.email, "push": self.push}


@dataclass
class User:
    id: str = ""
    email: str = ""
    created_at: datetime | None = None
    name: str | None = None
    bio: str | None = None
    timezone: str | None = None
    notification_preferences: NotificationPreferences = field(default_factory=NotificationPreferences)
    password_hash: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> User:
        return cls(
            id=str(d.get("id", "")),
            email=str(d.get("email", "")),
            created_at=_ts(d.get("created_at")),
            name=d.get("name"),
            bio=d.get("bio"),
            timezone=d.get("timezone"),
            notification_preferences=NotificationPreferences.from_dict(d.get("notification_preferences")),
            password_hash=str(d.get("password_hash", "")),
        )

    def to_dict(self, include_secret: bool = True) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "email": self.email,
            "created_at": _iso(self.created_at),
            "name": self.name,
            "bio": self.bio,
            "timezone": self.timezone,
            "notification_preferences": self.notification_preferences.to_dict(),
        }
        if include_secret:
            d["password_hash"] = self.password_hash
        return d


# ── Patches ───────────────────────────────────────────────────


def _patch_from_dict(cls, d: dict[str, Any], what: str):
    allowed = {f.name for f in fields(cls)}
    unknown = sorted(set(d) - allowed)
    if unknown:
        raise ValidationError([f"Field not editable on {what}: {k}" for k in unknown])
    return cls(**d)


@dataclass
class HabitPatch:
    """Editable habit fields. None means 'leave unchanged'."""

    name: str | None = None
    description: str | None = None
    frequency: str | None = None
    target: int | None = None
    color: str | None = None
    icon: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> HabitPatch:
        return _patch_from_dict(cls, d, "habit")

    def changes(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


@dataclass
class UserPatch:
    """Editable profile fields. None means 'leave unchanged'."""

    name: str | None = None
    bio: str | None = None
    timezone: str | None = None
    notification_preferences: dict[str, bool] | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> UserPatch:
        return _patch_from_dict(cls, d, "profile")

    def changes(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


# ── Derived snapshots ─────────────────────────────────────────


@dataclass
class StreakResult:
    current_streak: int = 0
    best_streak: int = 0
    last_completed: datetime | None = None


@dataclass
class DayCount:
    day: date
    completed: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.day.isoformat(), "completed": self.completed}


@dataclass
class RollingStats:
    per_day: list[DayCount] = field(default_factory=list)
    completion_rate: float = 0.0

    @property
    def total(self) -> int:
        return sum(d.completed for d in self.per_day)

    def to_dict(self) -> dict[str, Any]:
        return {
            "perDay": [d.to_dict() for d in self.per_day],
            "completionRate": round(self.completion_rate, 3),
            "total": self.total,
        }


@dataclass
class DashboardSummary:
    total_habits: int = 0
    completed_today: int = 0
    completion_pct_today: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    active_days: int = 0
    weekly: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalHabits": self.total_habits,
            "completedToday": self.completed_today,
            "completionPctToday": self.completion_pct_today,
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "activeDays": self.active_days,
            "weekly": self.weekly,
        }


@dataclass
class Insight:
    id: str = ""
    habit_id: str = ""
    insight_type: str = "completion_analysis"
    content: str = ""
    created_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "habit_id": self.habit_id,
            "insight_type": self.insight_type,
            "content": self.content,
            "created_at": _iso(self.created_at),
        }
