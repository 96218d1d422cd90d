"""Habit CRUD, validation, and completion logging for HabitPulse.

The repository owns one user's habits and completion log. Every mutation
builds new collections, persists them, and only then swaps them in, so a
StorageError leaves the in-memory state exactly as it was.
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import replace
from datetime import tzinfo
from typing import Any, Callable

from habitcore.clock import SystemClock, day_of
from habitcore.errors import DuplicateCompletionError, NotFoundError, StorageError, ValidationError
from habitcore.models import FREQUENCIES, CompletionEvent, Habit, HabitPatch
from habitcore.streaks import completed_on, compute_streak
from habitcore.workspace import events_key, habits_key

log = logging.getLogger(__name__)

HookCallback = Callable[[str, dict[str, Any]], Any]


# ── Validation ────────────────────────────────────────────────


HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")


def validate_habit(fields: dict[str, Any], require_name: bool = False) -> list[str]:
    """Validate habit fields and return list of errors (empty if valid)."""
    errors = []
    if "name" in fields or require_name:
        name = fields.get("name")
        if not isinstance(name, str) or not name.strip():
            errors.append("name must be a non-empty string")

    if "description" in fields and not isinstance(fields["description"], str):
        errors.append("description must be a string")

    if "frequency" in fields and fields["frequency"] not in FREQUENCIES:
        errors.append(f"Invalid frequency: {fields['frequency']}")

    if "target" in fields:
        target = fields["target"]
        if isinstance(target, bool) or not isinstance(target, int) or target < 1:
            errors.append("target must be an integer >= 1")

    if "color" in fields:
        color = fields["color"]
        if not isinstance(color, str) or not HEX_COLOR.match(color):
            errors.append(f"Invalid color: {color!r} (expected #RRGGBB)")

    if "icon" in fields:
        icon = fields["icon"]
        if not isinstance(icon, str) or not icon.strip():
            errors.append("icon must be a non-empty string")

    return errors


def _as_patch(data: dict[str, Any] | HabitPatch) -> HabitPatch:
    if isinstance(data, HabitPatch):
        return data
    if not isinstance(data, dict):
        raise ValidationError("Habit data must be a mapping")
    return HabitPatch.from_dict(data)


# ── Repository ────────────────────────────────────────────────


class HabitRepository:
    """One user's habits and completion events over a key-value store."""

    def __init__(
        self,
        store,
        user_id: str,
        clock=None,
        tz: tzinfo | None = None,
        on_event: HookCallback | None = None,
    ):
        self.store = store
        self.user_id = user_id
        self.clock = clock or SystemClock(tz)
        self.tz = tz
        self.on_event = on_event
        self._habits: list[Habit] = []
        self._events: list[CompletionEvent] = []
        self.reload()

    # ── Loading & persistence ─────────────────────────────────

    def reload(self) -> None:
        """Replace the in-memory snapshot with what the store holds."""
        raw_habits = self.store.load(habits_key(self.user_id)) or []
        raw_events = self.store.load(events_key(self.user_id)) or []
        try:
            habits = [Habit.from_dict(h) for h in raw_habits]
            events = [CompletionEvent.from_dict(e) for e in raw_events]
        except (TypeError, ValueError, AttributeError) as e:
            raise StorageError(f"Corrupt habit data for user {self.user_id}: {e}") from e
        self._habits = habits
        self._events = events

    def _commit(self, habits: list[Habit], events: list[CompletionEvent] | None = None) -> None:
        """Persist events (if changed) then habits, restoring events if the second write fails."""
        previous_events = [e.to_dict() for e in self._events]
        if events is not None:
            self.store.store(events_key(self.user_id), [e.to_dict() for e in events])
        try:
            self.store.store(habits_key(self.user_id), [h.to_dict() for h in habits])
        except StorageError:
            if events is not None:
                log.warning("Habit write failed for user %s; restoring event log", self.user_id)
                try:
                    self.store.store(events_key(self.user_id), previous_events)
                except StorageError:
                    log.exception("Could not restore event log for user %s", self.user_id)
            raise
        self._habits = habits
        if events is not None:
            self._events = events

    def _emit(self, hook_point: str, context: dict[str, Any]) -> None:
        if self.on_event is None:
            return
        try:
            self.on_event(hook_point, context)
        except Exception:
            log.exception("Hook dispatch failed for %s", hook_point)

    def _index(self, habit_id: str) -> int:
        for i, h in enumerate(self._habits):
            if h.id == habit_id:
                return i
        raise NotFoundError(f"Habit not found: {habit_id}")

    # ── Reads ─────────────────────────────────────────────────

    def get(self, habit_id: str) -> Habit:
        return replace(self._habits[self._index(habit_id)])

    def habits(self) -> list[Habit]:
        return [replace(h) for h in self._habits]

    def events(self, habit_id: str | None = None) -> list[CompletionEvent]:
        """Completion events, oldest first, optionally for one habit."""
        if habit_id is not None:
            self._index(habit_id)
        selected = [replace(e) for e in self._events if habit_id is None or e.habit_id == habit_id]
        selected.sort(key=lambda e: e.completed_at.timestamp() if e.completed_at else 0.0)
        return selected

    def events_by_habit(self) -> dict[str, list[CompletionEvent]]:
        grouped: dict[str, list[CompletionEvent]] = {h.id: [] for h in self._habits}
        for e in self.events():
            grouped.setdefault(e.habit_id, []).append(e)
        return grouped

    # ── Mutations ─────────────────────────────────────────────

    def create(self, data: dict[str, Any] | HabitPatch) -> Habit:
        """Create and persist a new habit with zeroed streaks."""
        fields = _as_patch(data).changes()
        errors = validate_habit(fields, require_name=True)
        if errors:
            raise ValidationError(errors)

        fields["name"] = fields["name"].strip()
        habit = Habit(
            id=uuid.uuid4().hex,
            user_id=self.user_id,
            created_at=self.clock.now(),
            **fields,
        )
        self._commit(self._habits + [habit])
        log.info("Created habit %s (%s) for user %s", habit.id, habit.name, self.user_id)
        self._emit("on_habit_created", {"habit": habit.to_dict()})
        return replace(habit)

    def update(self, habit_id: str, patch: dict[str, Any] | HabitPatch) -> Habit:
        """Shallow-merge editable fields into a habit. Streak fields are never touched."""
        idx = self._index(habit_id)
        changes = _as_patch(patch).changes()
        errors = validate_habit(changes)
        if errors:
            raise ValidationError(errors)
        if "name" in changes:
            changes["name"] = changes["name"].strip()

        updated = replace(self._habits[idx], **changes)
        habits = list(self._habits)
        habits[idx] = updated
        self._commit(habits)
        log.info("Updated habit %s: %s", habit_id, ", ".join(sorted(changes)) or "(no changes)")
        self._emit("on_habit_updated", {"habit": updated.to_dict(), "changed": sorted(changes)})
        return replace(updated)

    def delete(self, habit_id: str) -> None:
        """Remove a habit and every completion event it owns.

        Deleting an unknown id raises NotFoundError.
        """
        idx = self._index(habit_id)
        removed = self._habits[idx]
        habits = self._habits[:idx] + self._habits[idx + 1:]
        events = [e for e in self._events if e.habit_id != habit_id]
        dropped = len(self._events) - len(events)
        self._commit(habits, events)
        log.info("Deleted habit %s and %d completion events", habit_id, dropped)
        self._emit("on_habit_deleted", {"habit": removed.to_dict(), "events_deleted": dropped})

    def complete(self, habit_id: str, note: str | None = None, strict: bool = False) -> Habit:
        """Log today's completion and recompute the habit's streaks.

        A second completion on the same calendar day changes nothing and
        returns the habit as is, or raises DuplicateCompletionError when
        strict is set.
        """
        idx = self._index(habit_id)
        habit = self._habits[idx]
        if note is not None and not isinstance(note, str):
            raise ValidationError("note must be a string")

        now = self.clock.now()
        habit_events = [e for e in self._events if e.habit_id == habit_id]
        if completed_on(habit_events, now, self.tz):
            today = day_of(now, self.tz).isoformat()
            if strict:
                raise DuplicateCompletionError(habit_id, today)
            log.debug("Habit %s already completed on %s; ignoring", habit_id, today)
            return replace(habit)

        event = CompletionEvent(
            id=uuid.uuid4().hex,
            habit_id=habit_id,
            completed_at=now,
            note=(note or "").strip() or None,
        )
        result = compute_streak(habit_events + [event], habit.best_streak, now, self.tz)
        updated = replace(
            habit,
            current_streak=result.current_streak,
            best_streak=result.best_streak,
            last_completed=result.last_completed,
        )
        habits = list(self._habits)
        habits[idx] = updated
        self._commit(habits, self._events + [event])

        log.info("Completed habit %s: streak %d (best %d)", habit_id, updated.current_streak, updated.best_streak)
        context = {
            "habit": updated.to_dict(),
            "event": event.to_dict(),
            "previous_best": habit.best_streak,
        }
        self._emit("on_habit_completed", context)
        if updated.best_streak > habit.best_streak:
            self._emit("on_best_streak", context)
        return replace(updated)

    def recompute(self, habit_id: str) -> Habit:
        """Re-derive a habit's streak fields from its log. The best streak only ratchets up."""
        idx = self._index(habit_id)
        habit = self._habits[idx]
        habit_events = [e for e in self._events if e.habit_id == habit_id]
        result = compute_streak(habit_events, habit.best_streak, self.clock.now(), self.tz)
        updated = replace(
            habit,
            current_streak=result.current_streak,
            best_streak=result.best_streak,
            last_completed=result.last_completed,
        )
        if updated != habit:
            habits = list(self._habits)
            habits[idx] = updated
            self._commit(habits)
        return replace(updated)
