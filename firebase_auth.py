"""
Fournisseur d'authentification distant : API REST Firebase Authentication
(Identity Toolkit + Secure Token).
Les erreurs du fournisseur sont converties en AuthError ; le code brut n'est jamais montré.
"""
import logging
from collections import namedtuple
from typing import Optional

import requests

from config import FIREBASE_API_KEY, FIREBASE_AUTH_URL, FIREBASE_TOKEN_URL
from errors import AuthError, AuthErrorKind

REQUEST_TIMEOUT = 10

# Identité renvoyée par le fournisseur après connexion, inscription ou rafraîchissement
Credential = namedtuple("Credential", ["uid", "email", "id_token", "refresh_token"])

PROVIDER_ERRORS = {
    "EMAIL_NOT_FOUND": AuthErrorKind.USER_NOT_FOUND,
    "USER_NOT_FOUND": AuthErrorKind.USER_NOT_FOUND,
    "INVALID_PASSWORD": AuthErrorKind.WRONG_PASSWORD,
    "INVALID_LOGIN_CREDENTIALS": AuthErrorKind.INVALID_CREDENTIALS,
    "USER_DISABLED": AuthErrorKind.ACCOUNT_DISABLED,
    "TOO_MANY_ATTEMPTS_TRY_LATER": AuthErrorKind.RATE_LIMITED,
    "INVALID_EMAIL": AuthErrorKind.INVALID_EMAIL_FORMAT,
    "MISSING_EMAIL": AuthErrorKind.INVALID_EMAIL_FORMAT,
    "EMAIL_EXISTS": AuthErrorKind.EMAIL_ALREADY_IN_USE,
    "WEAK_PASSWORD": AuthErrorKind.WEAK_CREDENTIAL,
    "CONFIGURATION_NOT_FOUND": AuthErrorKind.MISCONFIGURED_BACKEND,
    "PROJECT_NOT_FOUND": AuthErrorKind.MISCONFIGURED_BACKEND,
    "INVALID_REFRESH_TOKEN": AuthErrorKind.INVALID_CREDENTIALS,
    "TOKEN_EXPIRED": AuthErrorKind.INVALID_CREDENTIALS,
}


def url_joiner(base_url, path):
    """Joins a base URL and a path, handling trailing slashes."""
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def map_provider_error(message: Optional[str]) -> AuthErrorKind:
    """
    Les messages d'erreur ont la forme "CODE" ou "CODE : détail".
    Une clé d'API invalide est signalée en texte libre.
    """
    if not message:
        return AuthErrorKind.UNKNOWN
    if message.startswith("API key not valid"):
        return AuthErrorKind.MISCONFIGURED_BACKEND
    code = message.split(" : ", 1)[0].strip()
    return PROVIDER_ERRORS.get(code, AuthErrorKind.UNKNOWN)


class FirebaseAuthProvider:

    def __init__(self, api_key: str = FIREBASE_API_KEY, auth_url: str = FIREBASE_AUTH_URL,
                 token_url: str = FIREBASE_TOKEN_URL):
        self.api_key = api_key
        self.auth_url = auth_url
        self.token_url = token_url

    def _post(self, url: str, **kwargs) -> dict:
        if not self.api_key:
            raise AuthError(AuthErrorKind.MISCONFIGURED_BACKEND)
        try:
            response = requests.post(url, params={"key": self.api_key}, timeout=REQUEST_TIMEOUT, **kwargs)
        except requests.exceptions.RequestException as e:
            logging.error(f"Fournisseur d'authentification injoignable: {e}")
            raise AuthError(AuthErrorKind.NETWORK_ERROR)
        try:
            data = response.json()
        except ValueError:
            data = {}
        if not response.ok:
            provider_message = (data.get("error") or {}).get("message") if isinstance(data, dict) else None
            kind = map_provider_error(provider_message)
            logging.warning(f"Refus du fournisseur d'authentification ({response.status_code}): {provider_message}")
            raise AuthError(kind)
        return data

    def sign_in(self, email: str, password: str) -> Credential:
        data = self._post(
            url_joiner(self.auth_url, "accounts:signInWithPassword"),
            json={"email": email, "password": password, "returnSecureToken": True},
        )
        return Credential(data["localId"], data.get("email", email), data["idToken"], data["refreshToken"])

    def sign_up(self, email: str, password: str) -> Credential:
        data = self._post(
            url_joiner(self.auth_url, "accounts:signUp"),
            json={"email": email, "password": password, "returnSecureToken": True},
        )
        return Credential(data["localId"], data.get("email", email), data["idToken"], data["refreshToken"])

    def send_password_reset(self, email: str):
        self._post(
            url_joiner(self.auth_url, "accounts:sendOobCode"),
            json={"requestType": "PASSWORD_RESET", "email": email},
        )

    def refresh(self, refresh_token: str) -> Credential:
        """Échange un refresh token contre un nouvel id token (restauration de session)."""
        data = self._post(
            self.token_url,
            data={"grant_type": "refresh_token", "refresh_token": refresh_token},
        )
        return Credential(data["user_id"], None, data["id_token"], data["refresh_token"])
