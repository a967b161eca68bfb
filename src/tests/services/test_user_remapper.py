"""Tests for effective owner resolution and placeholder creation."""

import pytest
from sqlalchemy.exc import OperationalError

from src.models import User
from src.services.database import session_scope
from src.services.exceptions import StoreUnavailable, UserResolutionFailed
from src.services.user_remapper import ensure_user, resolve_effective_user
from src.utils.config import Config, set_config

ALICE = "11111111-1111-1111-1111-111111111111"
BOB = "22222222-2222-2222-2222-222222222222"


class TestResolveEffectiveUser:
    def test_requested_user_wins(self):
        assert resolve_effective_user(BOB, ALICE, "fallback") == BOB

    def test_bundle_user_when_none_requested(self):
        assert resolve_effective_user(None, ALICE, "fallback") == ALICE

    def test_explicit_default(self):
        assert resolve_effective_user(None, None, "fallback") == "fallback"

    def test_empty_strings_fall_through(self):
        assert resolve_effective_user("", "", "fallback") == "fallback"

    def test_configured_default(self):
        assert resolve_effective_user() == "00000000-0000-0000-0000-000000000001"

    def test_default_from_environment(self, monkeypatch):
        monkeypatch.setenv("INTAKE_DEFAULT_USER_ID", BOB)
        set_config(Config("development"))

        assert resolve_effective_user() == BOB


class TestEnsureUser:
    def test_creates_placeholder(self, test_db):
        with session_scope() as session:
            created = ensure_user(session, ALICE)

        assert created is True
        with session_scope() as session:
            user = session.get(User, ALICE)
            assert user.display_name == "Imported User"
            assert user.email is None

    def test_existing_user_untouched(self, test_db):
        with session_scope() as session:
            session.add(User(id=ALICE, display_name="Alice"))

        with session_scope() as session:
            assert ensure_user(session, ALICE) is False

        with session_scope() as session:
            assert session.get(User, ALICE).display_name == "Alice"
            assert session.query(User).count() == 1

    def test_store_failure(self, test_db, monkeypatch):
        session = test_db()

        def broken_get(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        monkeypatch.setattr(session, "get", broken_get)

        with pytest.raises(UserResolutionFailed) as exc_info:
            ensure_user(session, ALICE)

        assert isinstance(exc_info.value, StoreUnavailable)
        assert exc_info.value.user_id == ALICE
        assert exc_info.value.retryable is True
