from unittest import mock

import pytest
import requests

from errors import AuthError, AuthErrorKind
from firebase_auth import FirebaseAuthProvider, map_provider_error


def fake_response(status_code, payload):
    response = mock.Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.json.return_value = payload
    return response


def error_response(message):
    return fake_response(400, {"error": {"code": 400, "message": message}})


@pytest.mark.parametrize("message, kind", [
    ("EMAIL_NOT_FOUND", AuthErrorKind.USER_NOT_FOUND),
    ("INVALID_PASSWORD", AuthErrorKind.WRONG_PASSWORD),
    ("INVALID_LOGIN_CREDENTIALS", AuthErrorKind.INVALID_CREDENTIALS),
    ("USER_DISABLED", AuthErrorKind.ACCOUNT_DISABLED),
    ("TOO_MANY_ATTEMPTS_TRY_LATER : Access to this account has been temporarily disabled",
     AuthErrorKind.RATE_LIMITED),
    ("INVALID_EMAIL", AuthErrorKind.INVALID_EMAIL_FORMAT),
    ("EMAIL_EXISTS", AuthErrorKind.EMAIL_ALREADY_IN_USE),
    ("WEAK_PASSWORD : Password should be at least 6 characters", AuthErrorKind.WEAK_CREDENTIAL),
    ("API key not valid. Please pass a valid API key.", AuthErrorKind.MISCONFIGURED_BACKEND),
    ("CONFIGURATION_NOT_FOUND", AuthErrorKind.MISCONFIGURED_BACKEND),
    ("SOMETHING_NEW", AuthErrorKind.UNKNOWN),
    (None, AuthErrorKind.UNKNOWN),
])
def test_map_provider_error(message, kind):
    assert map_provider_error(message) == kind


def test_sign_in_returns_credential():
    provider = FirebaseAuthProvider(api_key="key")
    payload = {"localId": "uid-1", "email": "a@b.fr", "idToken": "id", "refreshToken": "refresh"}
    with mock.patch("firebase_auth.requests.post", return_value=fake_response(200, payload)) as post:
        credential = provider.sign_in("a@b.fr", "secret1")

    assert credential.uid == "uid-1"
    assert credential.refresh_token == "refresh"
    url = post.call_args[0][0]
    assert url.endswith("/accounts:signInWithPassword")
    assert post.call_args.kwargs["params"] == {"key": "key"}
    assert post.call_args.kwargs["json"]["returnSecureToken"] is True


def test_provider_error_becomes_auth_error():
    provider = FirebaseAuthProvider(api_key="key")
    with mock.patch("firebase_auth.requests.post", return_value=error_response("INVALID_PASSWORD")):
        with pytest.raises(AuthError) as excinfo:
            provider.sign_in("a@b.fr", "mauvais")
    assert excinfo.value.kind == AuthErrorKind.WRONG_PASSWORD
    assert "INVALID_PASSWORD" not in excinfo.value.message


def test_network_failure():
    provider = FirebaseAuthProvider(api_key="key")
    with mock.patch("firebase_auth.requests.post", side_effect=requests.exceptions.ConnectionError("down")):
        with pytest.raises(AuthError) as excinfo:
            provider.sign_up("a@b.fr", "secret1")
    assert excinfo.value.kind == AuthErrorKind.NETWORK_ERROR


def test_missing_api_key_is_misconfiguration():
    provider = FirebaseAuthProvider(api_key="")
    with mock.patch("firebase_auth.requests.post") as post:
        with pytest.raises(AuthError) as excinfo:
            provider.send_password_reset("a@b.fr")
    assert excinfo.value.kind == AuthErrorKind.MISCONFIGURED_BACKEND
    post.assert_not_called()


def test_password_reset_request():
    provider = FirebaseAuthProvider(api_key="key")
    with mock.patch("firebase_auth.requests.post", return_value=fake_response(200, {"email": "a@b.fr"})) as post:
        provider.send_password_reset("a@b.fr")
    assert post.call_args.kwargs["json"] == {"requestType": "PASSWORD_RESET", "email": "a@b.fr"}


def test_refresh_uses_token_endpoint():
    provider = FirebaseAuthProvider(api_key="key", token_url="https://token.example/v1/token")
    payload = {"user_id": "uid-1", "id_token": "id", "refresh_token": "new"}
    with mock.patch("firebase_auth.requests.post", return_value=fake_response(200, payload)) as post:
        credential = provider.refresh("old")
    assert post.call_args[0][0] == "https://token.example/v1/token"
    assert post.call_args.kwargs["data"] == {"grant_type": "refresh_token", "refresh_token": "old"}
    assert credential.refresh_token == "new"
