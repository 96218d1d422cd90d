"""Local accounts, profiles and sessions for HabitPulse.

Profiles are keyed by email. A Session is the explicit handle on one signed-in
user: it is created by sign_in (or resume), carries that user's habit
repository, and is discarded by sign_out.
"""

from __future__ import annotations

import logging
import re
import uuid
from datetime import tzinfo
from typing import Any

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from passlib.context import CryptContext

from habitcore.clock import SystemClock
from habitcore.config import Settings
from habitcore.errors import AuthError, NotFoundError, StorageError, ValidationError
from habitcore.hooks import hook_dispatcher
from habitcore.insights import CannedInsights, habit_insight
from habitcore.models import DashboardSummary, NotificationPreferences, RollingStats, User, UserPatch
from habitcore.repository import HabitRepository, HookCallback
from habitcore.stats import DEFAULT_WINDOW_DAYS, compute_rolling_stats, dashboard_summary
from habitcore.storage import JsonFileStore
from habitcore.workspace import SESSION_KEY, events_key, habits_key, user_key

log = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s/]+@[^@\s/]+\.[^@\s/]+$")
MIN_PASSWORD_LENGTH = 6


# ── Passwords ─────────────────────────────────────────────────


pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, encoded: str) -> bool:
    """False for a wrong password and for a stored hash passlib cannot parse."""
    try:
        return pwd_context.verify(password, encoded)
    except (ValueError, TypeError):
        return False


# ── Validation ────────────────────────────────────────────────


def validate_profile(changes: dict[str, Any]) -> list[str]:
    """Validate profile fields and return list of errors (empty if valid)."""
    errors = []
    for key in ("name", "bio"):
        if key in changes and not isinstance(changes[key], str):
            errors.append(f"{key} must be a string")
    if "timezone" in changes:
        tz = changes["timezone"]
        try:
            ZoneInfo(str(tz))
        except (ZoneInfoNotFoundError, ValueError):
            errors.append(f"Unknown timezone: {tz}")
    if "notification_preferences" in changes:
        prefs = changes["notification_preferences"]
        if not isinstance(prefs, dict):
            errors.append("notification_preferences must be a mapping")
        else:
            unknown = sorted(set(prefs) - {"email", "push"})
            if unknown:
                errors.append(f"Unknown notification channels: {', '.join(unknown)}")
            if any(not isinstance(v, bool) for v in prefs.values()):
                errors.append("notification preferences must be booleans")
    return errors


# ── Session ───────────────────────────────────────────────────


class Session:
    """One signed-in user's view of the tracker."""

    def __init__(
        self,
        user: User,
        store,
        clock=None,
        tz: tzinfo | None = None,
        on_event: HookCallback | None = None,
        window_days: int = DEFAULT_WINDOW_DAYS,
    ):
        self.user = user
        self.clock = clock or SystemClock(tz)
        self.tz = tz
        self.window_days = window_days
        self.habits = HabitRepository(store, user.id, self.clock, tz, on_event)
        self.closed = False

    def _check_open(self) -> None:
        if self.closed:
            raise AuthError("Session is closed; sign in again")

    def stats(self, window_days: int | None = None) -> RollingStats:
        self._check_open()
        return compute_rolling_stats(
            self.habits.habits(),
            self.habits.events_by_habit(),
            self.window_days if window_days is None else window_days,
            self.clock.now(),
            self.tz,
        )

    def dashboard(self) -> DashboardSummary:
        self._check_open()
        return dashboard_summary(
            self.habits.habits(), self.habits.events_by_habit(), self.clock.now(), self.tz, self.window_days
        )

    def insights(self, canned: CannedInsights | None = None) -> list[str]:
        """Per-habit completion insights followed by the canned pool."""
        self._check_open()
        now = self.clock.now()
        events = self.habits.events()
        lines = [habit_insight(h, events, now, self.window_days).content for h in self.habits.habits()]
        lines.extend(canned if canned is not None else CannedInsights())
        return lines

    def close(self) -> None:
        self.closed = True


# ── Accounts ──────────────────────────────────────────────────


class AccountService:
    """Sign-up, sign-in and profile management over a key-value store."""

    def __init__(
        self,
        store,
        clock=None,
        tz: tzinfo | None = None,
        on_event: HookCallback | None = None,
        window_days: int = DEFAULT_WINDOW_DAYS,
    ):
        self.store = store
        self.clock = clock or SystemClock(tz)
        self.tz = tz
        self.on_event = on_event
        self.window_days = window_days

    @classmethod
    def from_settings(cls, settings: Settings) -> AccountService:
        """File-backed service for the configured workspace, with hooks enabled."""
        tz = settings.tzinfo()
        return cls(
            JsonFileStore(settings.root),
            SystemClock(tz),
            tz,
            hook_dispatcher(settings.root),
            settings.window_days,
        )

    def open_session(self, user: User) -> Session:
        """Session for an already-authenticated user; does not record a sign-in."""
        return Session(user, self.store, self.clock, self.tz, self.on_event, self.window_days)

    def _save(self, user: User) -> None:
        self.store.store(user_key(user.email), user.to_dict())

    def get_user(self, email: str) -> User:
        raw = self.store.load(user_key(email))
        if not raw:
            raise NotFoundError(f"User not found: {email}")
        try:
            return User.from_dict(raw)
        except (TypeError, ValueError, AttributeError) as e:
            raise StorageError(f"Corrupt profile for {email}: {e}") from e

    def sign_up(self, email: str, password: str, name: str | None = None) -> User:
        errors = []
        email = email.strip().lower() if isinstance(email, str) else ""
        if not EMAIL_RE.match(email):
            errors.append(f"Invalid email: {email!r}")
        if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
            errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if name is not None and not isinstance(name, str):
            errors.append("name must be a string")
        if not errors and self.store.load(user_key(email)):
            errors.append(f"Email already registered: {email}")
        if errors:
            raise ValidationError(errors)

        user = User(
            id=uuid.uuid4().hex,
            email=email,
            created_at=self.clock.now(),
            name=name.strip() if name and name.strip() else None,
            password_hash=hash_password(password),
        )
        self._save(user)
        log.info("Registered user %s (%s)", user.id, email)
        return user

    def authenticate(self, email: str, password: str) -> User:
        """Check credentials without opening a session."""
        user = self.get_user((email or "").strip().lower())
        if not verify_password(password or "", user.password_hash):
            raise AuthError("Invalid credentials")
        return user

    def sign_in(self, email: str, password: str) -> Session:
        user = self.authenticate(email, password)
        self.store.store(SESSION_KEY, {"email": user.email, "signed_in_at": self.clock.now().isoformat()})
        log.info("Signed in %s", user.email)
        return self.open_session(user)

    def resume(self) -> Session | None:
        """Reopen the session recorded by the last sign_in, if any."""
        pointer = self.store.load(SESSION_KEY)
        if not pointer or not pointer.get("email"):
            return None
        try:
            user = self.get_user(pointer["email"])
        except NotFoundError:
            log.warning("Recorded session points at missing user %s; clearing it", pointer["email"])
            self.store.delete(SESSION_KEY)
            return None
        return self.open_session(user)

    def sign_out(self, session: Session | None = None) -> None:
        self.store.delete(SESSION_KEY)
        if session is not None:
            session.close()
            log.info("Signed out %s", session.user.email)

    def update_profile(self, email: str, patch: dict[str, Any] | UserPatch) -> User:
        user = self.get_user(email)
        if not isinstance(patch, UserPatch):
            if not isinstance(patch, dict):
                raise ValidationError("Profile data must be a mapping")
            patch = UserPatch.from_dict(patch)
        changes = patch.changes()
        errors = validate_profile(changes)
        if errors:
            raise ValidationError(errors)

        prefs = changes.pop("notification_preferences", None)
        for key, value in changes.items():
            setattr(user, key, value)
        if prefs is not None:
            merged = {**user.notification_preferences.to_dict(), **prefs}
            user.notification_preferences = NotificationPreferences.from_dict(merged)
        self._save(user)
        log.info("Updated profile for %s", user.email)
        return user

    def delete_account(self, email: str) -> None:
        """Remove the profile and every habit and completion event it owns."""
        user = self.get_user(email)
        self.store.delete(events_key(user.id))
        self.store.delete(habits_key(user.id))
        self.store.delete(user_key(user.email))
        pointer = self.store.load(SESSION_KEY)
        if pointer and pointer.get("email") == user.email:
            self.store.delete(SESSION_KEY)
        log.info("Deleted account %s", user.email)
