"""Error types raised by the HabitPulse core."""

from __future__ import annotations


class HabitError(Exception):
    """Base class for all HabitPulse errors."""


class ValidationError(HabitError):
    """Malformed input. Carries the full list of problems found."""

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class NotFoundError(HabitError):
    """A habit or user identifier does not exist in the store."""


class DuplicateCompletionError(HabitError):
    """The habit was already completed on this calendar day."""

    def __init__(self, habit_id: str, day: str):
        self.habit_id = habit_id
        self.day = day
        super().__init__(f"Habit {habit_id} already completed on {day}")


class StorageError(HabitError):
    """The backing store failed to read or write."""


class AuthError(HabitError):
    """Credentials did not match the stored account."""
