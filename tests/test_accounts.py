"""Tests for habitcore/accounts.py — accounts, profiles and sessions."""

import pytest

from habitcore.accounts import AccountService, hash_password, validate_profile, verify_password
from habitcore.config import load_settings
from habitcore.errors import AuthError, NotFoundError, ValidationError
from habitcore.insights import CannedInsights
from habitcore.storage import JsonFileStore

from conftest import UTC


@pytest.fixture
def accounts(store, clock):
    return AccountService(store, clock, tz=UTC)


@pytest.fixture
def alice(accounts):
    return accounts.sign_up("Alice@Example.com", "secret123", name="Alice")


# ── Passwords ─────────────────────────────────────────────────


def test_password_hash_roundtrip():
    encoded = hash_password("hunter22")
    assert encoded.startswith("$pbkdf2-sha256$")
    assert verify_password("hunter22", encoded)
    assert not verify_password("hunter23", encoded)


@pytest.mark.parametrize("encoded", ["", "plain", "md5$1$00$00", "$pbkdf2-sha256$x$zz$00"])
def test_verify_malformed_hash(encoded):
    assert verify_password("whatever", encoded) is False


# ── Sign-up / sign-in ─────────────────────────────────────────


def test_sign_up(alice, store, clock):
    assert alice.email == "alice@example.com"
    assert alice.name == "Alice"
    assert alice.created_at == clock.now()
    saved = store.data["users/alice@example.com"]
    assert saved["password_hash"] != "secret123"
    assert verify_password("secret123", saved["password_hash"])


def test_sign_up_duplicate(accounts, alice):
    with pytest.raises(ValidationError, match="already registered"):
        accounts.sign_up("alice@example.com", "another1")


def test_sign_up_invalid(accounts, store):
    with pytest.raises(ValidationError) as exc:
        accounts.sign_up("not-an-email", "123")
    assert len(exc.value.errors) == 2
    assert store.data == {}


def test_sign_in(accounts, alice, store):
    session = accounts.sign_in("ALICE@example.com ", "secret123")
    assert session.user.id == alice.id
    assert store.data["session"]["email"] == "alice@example.com"


def test_sign_in_wrong_password(accounts, alice, store):
    with pytest.raises(AuthError):
        accounts.sign_in("alice@example.com", "wrong-password")
    assert "session" not in store.data


def test_sign_in_unknown_user(accounts):
    with pytest.raises(NotFoundError):
        accounts.sign_in("nobody@example.com", "secret123")


def test_resume_and_sign_out(accounts, alice):
    assert accounts.resume() is None
    accounts.sign_in("alice@example.com", "secret123")

    session = accounts.resume()
    assert session.user.email == "alice@example.com"

    accounts.sign_out(session)
    assert accounts.resume() is None
    assert session.closed
    with pytest.raises(AuthError):
        session.stats()


def test_resume_clears_dangling_pointer(accounts, store):
    store.data["session"] = {"email": "ghost@example.com"}
    assert accounts.resume() is None
    assert "session" not in store.data


# ── Profiles ──────────────────────────────────────────────────


def test_validate_profile():
    assert validate_profile({"timezone": "Europe/Berlin", "bio": "hi"}) == []
    assert validate_profile({"timezone": "Mars/Olympus"}) == ["Unknown timezone: Mars/Olympus"]
    assert len(validate_profile({"notification_preferences": {"sms": True, "email": "yes"}})) == 2


def test_update_profile(accounts, alice):
    user = accounts.update_profile(alice.email, {"bio": "Early riser", "notification_preferences": {"push": True}})
    assert user.bio == "Early riser"
    assert user.notification_preferences.push is True
    assert user.notification_preferences.email is True
    assert accounts.get_user(alice.email).bio == "Early riser"


def test_update_profile_rejects_email_change(accounts, alice):
    with pytest.raises(ValidationError):
        accounts.update_profile(alice.email, {"email": "new@example.com"})


def test_update_profile_bad_timezone(accounts, alice):
    with pytest.raises(ValidationError):
        accounts.update_profile(alice.email, {"timezone": "Nowhere/Land"})
    assert accounts.get_user(alice.email).timezone is None


def test_delete_account_cascades(accounts, alice, store):
    session = accounts.sign_in(alice.email, "secret123")
    habit = session.habits.create({"name": "Read"})
    session.habits.complete(habit.id)
    assert f"events/{alice.id}" in store.data

    accounts.delete_account(alice.email)
    assert store.data == {}
    with pytest.raises(NotFoundError):
        accounts.get_user(alice.email)


# ── Session views ─────────────────────────────────────────────


def test_session_views(accounts, alice, clock):
    session = accounts.sign_in(alice.email, "secret123")
    read = session.habits.create({"name": "Read"})
    session.habits.create({"name": "Walk"})
    session.habits.complete(read.id)
    clock.advance(days=1)
    session.habits.complete(read.id)

    stats = session.stats(window_days=7)
    assert len(stats.per_day) == 7
    assert stats.total == 2
    assert stats.completion_rate == pytest.approx(2 / 14)
    assert len(session.stats().per_day) == 30

    summary = session.dashboard()
    assert summary.total_habits == 2
    assert summary.completed_today == 1
    assert summary.current_streak == 2

    lines = session.insights(CannedInsights(["tip one"]))
    assert len(lines) == 3
    assert lines[-1] == "tip one"
    assert "challenging" in lines[0]


def test_from_settings_uses_workspace(workspace):
    settings = load_settings()
    accounts = AccountService.from_settings(settings)
    accounts.sign_up("bob@example.com", "secret123")
    assert isinstance(accounts.store, JsonFileStore)
    assert (workspace / "data" / "users" / "bob@example.com.json").exists()
    assert accounts.tz is not None


@pytest.mark.parametrize("email, password", [(None, "secret123"), (42, "secret123"), ("eve@example.com", None), ("eve@example.com", 1234567)])
def test_sign_up_rejects_non_strings(accounts, store, email, password):
    with pytest.raises(ValidationError):
        accounts.sign_up(email, password)
    assert store.data == {}
