"""Tests for cli/habitpulse.py — account subcommands."""

import pytest

from cli import habitpulse
from habitcore.accounts import AccountService
from habitcore.config import load_settings


@pytest.fixture
def password(monkeypatch):
    monkeypatch.setattr(habitpulse.getpass, "getpass", lambda prompt="": "secret123")


def test_signup_signin_signout(workspace, password, capsys):
    habitpulse.main(["signup", "carol@example.com", "--name", "Carol"])
    assert "Registered and signed in as carol@example.com" in capsys.readouterr().out

    accounts = AccountService.from_settings(load_settings())
    assert accounts.resume().user.name == "Carol"

    habitpulse.main(["signout"])
    assert accounts.resume() is None

    habitpulse.main(["signin", "carol@example.com"])
    assert accounts.resume().user.email == "carol@example.com"


def test_signin_wrong_password(workspace, monkeypatch, capsys):
    monkeypatch.setattr(habitpulse.getpass, "getpass", lambda prompt="": "secret123")
    habitpulse.main(["signup", "dave@example.com"])
    monkeypatch.setattr(habitpulse.getpass, "getpass", lambda prompt="": "wrong-one")
    with pytest.raises(SystemExit) as exc:
        habitpulse.main(["signin", "dave@example.com"])
    assert exc.value.code == 1
    assert "Invalid credentials" in capsys.readouterr().err


def test_no_session(workspace, capsys):
    with pytest.raises(SystemExit):
        habitpulse.main([])
    assert "No signed-in account" in capsys.readouterr().out
