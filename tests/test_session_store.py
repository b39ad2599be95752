"""Tests for login, lazy expiry, sliding refresh and legacy migration"""

import json
from datetime import timedelta

import pytest

from conftest import make_token
from pawstock.auth.session_store import (
    LEGACY_TOKEN_KEY,
    LEGACY_USER_KEY,
    SESSION_KEY,
    SessionStore,
)
from pawstock.services.client_storage import JsonFileStorage
from pawstock.utils.exceptions import AuthFailure, RemoteFailure


def test_authenticate_creates_valid_session(session_store, client, clock):
    session = session_store.authenticate("admin", "admin123")

    client.login.assert_called_once_with("admin", "admin123")
    assert session_store.is_valid()
    assert session.expires_at == clock.now + timedelta(minutes=15)
    assert session.expires_at - session.issued_at == timedelta(minutes=15)
    assert session_store.token() == session.token


def test_authenticate_reads_display_claims(session_store, client):
    client.login.return_value = {"token": make_token(sub="pawadmin", id=42)}

    session_store.authenticate("pawadmin", "paw2024")

    user = session_store.current_user()
    assert user.username == "pawadmin"
    assert user.id == "42"
    assert user.role == "admin"


def test_opaque_token_falls_back_to_typed_username(session_store, client):
    client.login.return_value = {"token": "opaque-token-value"}

    session_store.authenticate("admin", "admin123")

    assert session_store.current_user().username == "admin"
    assert session_store.token() == "opaque-token-value"


def test_rejected_and_unreachable_login_look_the_same(session_store, client):
    client.login.side_effect = RemoteFailure("Login failed: 401", status_code=401)
    with pytest.raises(AuthFailure) as rejected:
        session_store.authenticate("admin", "wrong")

    client.login.side_effect = RemoteFailure("Login failed: ConnectionError")
    with pytest.raises(AuthFailure) as unreachable:
        session_store.authenticate("admin", "admin123")

    assert str(rejected.value) == str(unreachable.value) == AuthFailure.GENERIC_MESSAGE
    assert not session_store.is_valid()


def test_login_without_token_fails(session_store, client):
    client.login.return_value = {"username": "admin"}

    with pytest.raises(AuthFailure):
        session_store.authenticate("admin", "admin123")


def test_failed_login_keeps_previous_session(session_store, client):
    session_store.authenticate("admin", "admin123")
    client.login.side_effect = RemoteFailure("Login failed: 401", status_code=401)

    with pytest.raises(AuthFailure):
        session_store.authenticate("admin", "wrong")

    assert session_store.is_valid()


def test_new_login_replaces_session(session_store, client):
    session_store.authenticate("admin", "admin123")
    client.login.return_value = {"token": make_token(sub="pawadmin")}

    session_store.authenticate("pawadmin", "paw2024")

    assert session_store.current_user().username == "pawadmin"


def test_session_expires_without_terminate(session_store, storage, clock):
    session_store.authenticate("admin", "admin123")

    clock.advance(minutes=15)
    assert session_store.is_valid()  # boundary is inclusive

    clock.advance(seconds=1)
    assert not session_store.is_valid()
    assert session_store.current_user() is None
    assert storage.get(SESSION_KEY) is None


def test_token_is_returned_even_when_expired(session_store, clock):
    session = session_store.authenticate("admin", "admin123")
    clock.advance(hours=1)

    assert session_store.token() == session.token


def test_refresh_extends_expiry(session_store, clock):
    first = session_store.authenticate("admin", "admin123")
    clock.advance(minutes=10)

    assert session_store.refresh() is True

    refreshed = session_store.session()
    assert refreshed.expires_at > first.expires_at
    assert refreshed.expires_at == clock.now + timedelta(minutes=15)
    assert refreshed.token == first.token
    assert refreshed.user == first.user


def test_refresh_without_session_has_no_side_effect(session_store, storage):
    assert session_store.refresh() is False
    assert storage.get(SESSION_KEY) is None


def test_refresh_on_expired_session_fails(session_store, clock):
    session_store.authenticate("admin", "admin123")
    clock.advance(minutes=16)

    assert session_store.refresh() is False
    assert session_store.session() is None


def test_terminate_is_idempotent(session_store, storage):
    session_store.authenticate("admin", "admin123")
    storage.set(LEGACY_TOKEN_KEY, "stale")

    session_store.terminate()
    session_store.terminate()

    assert not session_store.is_valid()
    assert storage.get(SESSION_KEY) is None
    assert storage.get(LEGACY_TOKEN_KEY) is None


def test_legacy_session_is_migrated_once(session_store, storage, clock):
    storage.set(LEGACY_USER_KEY, {"id": "1", "username": "admin", "role": "admin"})
    storage.set(LEGACY_TOKEN_KEY, "legacy-token")

    first = session_store.session()
    second = session_store.session()

    assert first is not None
    assert first == second
    assert first.user.username == "admin"
    assert first.token == "legacy-token"
    assert first.expires_at == clock.now + timedelta(minutes=15)
    assert storage.get(LEGACY_USER_KEY) is None
    assert storage.get(LEGACY_TOKEN_KEY) is None
    assert storage.get(SESSION_KEY) is not None


def test_legacy_record_stored_as_json_string(session_store, storage):
    storage.set(LEGACY_USER_KEY, json.dumps({"username": "pawadmin", "role": "admin"}))

    assert session_store.is_valid()
    user = session_store.current_user()
    assert user.username == "pawadmin"
    assert user.id == "pawadmin"
    assert session_store.token() is None


def test_legacy_numeric_id_is_kept_as_text(session_store, storage):
    storage.set(LEGACY_USER_KEY, {"id": 42, "username": "admin"})

    assert session_store.current_user().id == "42"


def test_corrupt_legacy_record_is_dropped(session_store, storage):
    storage.set(LEGACY_USER_KEY, "{not json")
    storage.set(LEGACY_TOKEN_KEY, "legacy-token")

    assert session_store.session() is None
    assert session_store.session() is None
    assert storage.get(LEGACY_USER_KEY) is None
    assert storage.get(LEGACY_TOKEN_KEY) is None


def test_corrupt_current_record_is_discarded(session_store, storage):
    storage.set(SESSION_KEY, {"user": "nope"})

    assert not session_store.is_valid()
    assert storage.get(SESSION_KEY) is None


def test_session_survives_process_restart(tmp_path, client, clock):
    path = tmp_path / "client_state.json"
    SessionStore(JsonFileStorage(path), client, clock=clock).authenticate("admin", "admin123")

    reopened = SessionStore(JsonFileStorage(path), client, clock=clock)

    assert reopened.is_valid()
    assert reopened.current_user().username == "admin"
