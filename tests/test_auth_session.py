import json
from unittest import mock

import pytest

from auth_backends import MockAuthBackend, RemoteAuthBackend
from auth_session import AuthSession, SessionState
from config import CURRENT_USER_KEY, MESSAGES_KEY, REMOTE_CREDENTIAL_KEY
from errors import AuthError, AuthErrorKind
from firebase_auth import Credential
from schemas import Project, SignUpData, Ticket, User, UserRole


@pytest.fixture
def session(data, storage):
    return AuthSession(MockAuthBackend(data.users, data.messages), storage)


def test_client_sign_in(session, accounts, storage):
    user = session.sign_in("client@system.com", "client123")

    assert user.role == UserRole.client
    assert session.state == SessionState.SIGNED_IN
    assert session.current_user.id == "client-1"
    marker = json.loads(storage.get_item(CURRENT_USER_KEY))
    assert marker["id"] == "client-1"
    assert "password" not in marker


def test_wrong_password_keeps_session_signed_out(session, accounts, storage):
    with pytest.raises(AuthError) as excinfo:
        session.sign_in("client@system.com", "mauvais")

    assert excinfo.value.kind == AuthErrorKind.INVALID_CREDENTIALS
    assert session.state == SessionState.SIGNED_OUT
    assert session.current_user is None
    assert storage.get_item(CURRENT_USER_KEY) is None


def test_inactive_account_cannot_sign_in(session, accounts, data):
    data.users.update("client-1", {"is_active": False})
    with pytest.raises(AuthError) as excinfo:
        session.sign_in("client@system.com", "client123")
    assert excinfo.value.kind == AuthErrorKind.ACCOUNT_INACTIVE
    assert not session.is_signed_in


def test_legacy_plain_text_password(session, data):
    data.users.add(User(id="user-9", email="legacy@system.com", password="legacy123", role=UserRole.client))
    assert session.sign_in("legacy@system.com", "legacy123").id == "user-9"


def test_sign_up_fans_out_one_message_per_admin(session, data, accounts):
    data.users.add(User(id="admin-2", email="admin2@system.com", role=UserRole.admin))

    user = session.sign_up(SignUpData(email="new@client.fr", password="secret1", full_name="New Client"))

    messages = data.messages.get_all()
    assert sorted(m.recipient_id for m in messages) == ["admin-1", "admin-2"]
    assert all(m.sender_id == user.id for m in messages)
    assert all(m.is_broadcast is False and m.is_read is False for m in messages)
    assert session.current_user.id == user.id
    assert data.users.get_by_id(user.id).password != "secret1"


def test_sign_up_rejects_duplicate_email(session, accounts, data):
    with pytest.raises(AuthError) as excinfo:
        session.sign_up(SignUpData(email="Client@System.com", password="secret1"))
    assert excinfo.value.kind == AuthErrorKind.EMAIL_ALREADY_IN_USE
    assert session.state == SessionState.SIGNED_OUT
    assert data.messages.get_all() == []


@pytest.mark.parametrize("email, password, kind", [
    ("pas-un-email", "secret1", AuthErrorKind.INVALID_EMAIL_FORMAT),
    ("ok@agence.fr", "123", AuthErrorKind.WEAK_CREDENTIAL),
])
def test_sign_up_validation(session, email, password, kind):
    with pytest.raises(AuthError) as excinfo:
        session.sign_up(SignUpData(email=email, password=password))
    assert excinfo.value.kind == kind


def test_sign_out_never_raises(session, accounts, storage):
    session.sign_in("admin@system.com", "admin123")
    session.backend.sign_out = mock.Mock(side_effect=RuntimeError("backend indisponible"))

    session.sign_out()

    assert session.state == SessionState.SIGNED_OUT
    assert session.current_user is None
    assert storage.get_item(CURRENT_USER_KEY) is None


def test_sign_out_survives_marker_removal_failure(session, accounts, storage):
    session.sign_in("admin@system.com", "admin123")
    with mock.patch.object(storage, "remove_item", side_effect=RuntimeError("stockage indisponible")):
        session.sign_out()
    assert session.current_user is None


def test_reset_password(session, accounts):
    session.reset_password("dev@system.com")
    with pytest.raises(AuthError) as excinfo:
        session.reset_password("inconnu@system.com")
    assert excinfo.value.kind == AuthErrorKind.NO_ACCOUNT_FOUND


def test_restore_from_marker(data, storage, accounts):
    AuthSession(MockAuthBackend(data.users, data.messages), storage).sign_in("dev@system.com", "dev123")

    restored = AuthSession(MockAuthBackend(data.users, data.messages), storage)
    assert restored.restore().id == "dev-1"
    assert restored.state == SessionState.SIGNED_IN


def test_restore_honors_deactivation(data, storage, accounts):
    AuthSession(MockAuthBackend(data.users, data.messages), storage).sign_in("dev@system.com", "dev123")
    data.users.update("dev-1", {"is_active": False})

    restored = AuthSession(MockAuthBackend(data.users, data.messages), storage)
    assert restored.restore() is None
    assert restored.state == SessionState.SIGNED_OUT


def test_capability_predicates(session, accounts):
    ticket = Ticket(id="ticket-1", project_id="proj-1", created_by="client-1", assigned_to="dev-1", title="t")
    project = Project(id="proj-1", name="Site", client_id="client-1", web_developer_id="dev-1")
    assert not session.can_manage_ticket(ticket)

    session.sign_in("dev@system.com", "dev123")
    assert session.can_manage_ticket(ticket)
    assert session.can_access_project(project)
    assert not session.is_admin()

    session.sign_out()
    assert not session.can_access_project(project)


# --- Mode distant ---

@pytest.fixture
def provider():
    return mock.Mock()


@pytest.fixture
def remote_session(remote_data, storage, provider):
    backend = RemoteAuthBackend(provider, remote_data.users, storage)
    return AuthSession(backend, storage)


def test_remote_sign_in_reads_profile(remote_session, remote_data, provider, storage):
    remote_data.users.add(User(id="uid-1", email="client@system.com", role=UserRole.client))
    provider.sign_in.return_value = Credential("uid-1", "client@system.com", "id-token", "refresh-token")

    user = remote_session.sign_in("client@system.com", "client123")

    assert user.id == "uid-1"
    assert json.loads(storage.get_item(REMOTE_CREDENTIAL_KEY))["refresh_token"] == "refresh-token"
    # Aucun marqueur local en mode distant
    assert storage.get_item(CURRENT_USER_KEY) is None


def test_remote_sign_in_without_profile(remote_session, provider):
    provider.sign_in.return_value = Credential("uid-404", "x@y.fr", "id-token", "refresh-token")
    with pytest.raises(AuthError) as excinfo:
        remote_session.sign_in("x@y.fr", "secret1")
    assert excinfo.value.kind == AuthErrorKind.USER_NOT_FOUND
    assert remote_session.state == SessionState.SIGNED_OUT


def test_remote_disabled_profile(remote_session, remote_data, provider):
    remote_data.users.add(User(id="uid-1", email="a@b.fr", is_active=False))
    provider.sign_in.return_value = Credential("uid-1", "a@b.fr", "id-token", "refresh-token")
    with pytest.raises(AuthError) as excinfo:
        remote_session.sign_in("a@b.fr", "secret1")
    assert excinfo.value.kind == AuthErrorKind.ACCOUNT_DISABLED


def test_remote_provider_errors_propagate(remote_session, provider):
    provider.sign_in.side_effect = AuthError(AuthErrorKind.RATE_LIMITED)
    with pytest.raises(AuthError) as excinfo:
        remote_session.sign_in("a@b.fr", "secret1")
    assert excinfo.value.kind == AuthErrorKind.RATE_LIMITED
    assert remote_session.current_user is None


def test_remote_sign_up_sends_no_broadcast(remote_session, remote_data, provider, storage):
    remote_data.users.add(User(id="admin-1", email="admin@system.com", role=UserRole.admin))
    provider.sign_up.return_value = Credential("uid-2", "new@client.fr", "id-token", "refresh-token")

    user = remote_session.sign_up(SignUpData(email="new@client.fr", password="secret1", full_name="New"))

    assert user.id == "uid-2"
    assert remote_data.users.get_by_id("uid-2").full_name == "New"
    assert storage.get_item(MESSAGES_KEY) is None


def test_remote_reset_password_maps_not_found(remote_session, provider):
    provider.send_password_reset.side_effect = AuthError(AuthErrorKind.USER_NOT_FOUND)
    with pytest.raises(AuthError) as excinfo:
        remote_session.reset_password("inconnu@system.com")
    assert excinfo.value.kind == AuthErrorKind.NO_ACCOUNT_FOUND


def test_remote_restore_uses_refresh_token(remote_session, remote_data, provider, storage):
    remote_data.users.add(User(id="uid-1", email="a@b.fr"))
    storage.set_item(REMOTE_CREDENTIAL_KEY, json.dumps({"uid": "uid-1", "refresh_token": "old"}))
    loading_during_call = []

    def refresh(token):
        loading_during_call.append(remote_session.snapshot()["loading"])
        return Credential("uid-1", None, "new-id-token", "new-refresh")
    provider.refresh.side_effect = refresh

    user = remote_session.restore()

    assert user.id == "uid-1"
    assert loading_during_call == [True]
    assert remote_session.snapshot()["loading"] is False
    provider.refresh.assert_called_once_with("old")


def test_remote_restore_failure_stays_signed_out(remote_session, provider, storage):
    storage.set_item(REMOTE_CREDENTIAL_KEY, json.dumps({"refresh_token": "expired"}))
    provider.refresh.side_effect = AuthError(AuthErrorKind.INVALID_CREDENTIALS)

    assert remote_session.restore() is None
    assert remote_session.state == SessionState.SIGNED_OUT
    assert remote_session.loading is False


def test_remote_sign_out_clears_credential(remote_session, storage):
    storage.set_item(REMOTE_CREDENTIAL_KEY, json.dumps({"refresh_token": "r"}))
    remote_session.sign_out()
    assert storage.get_item(REMOTE_CREDENTIAL_KEY) is None
