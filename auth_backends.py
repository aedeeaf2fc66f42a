"""
Les deux façons d'authentifier un utilisateur :
- MockAuthBackend : comptes stockés dans le dépôt local des utilisateurs ;
- RemoteAuthBackend : identifiants chez le fournisseur distant, profils dans MongoDB.
Les erreurs sont toujours des AuthError.
"""
import json
import logging
import re
from typing import Optional

from pymongo.errors import PyMongoError

import permissions
from config import REMOTE_CREDENTIAL_KEY
from errors import AuthError, AuthErrorKind
from notifications import notify_registration
from schemas import SignUpData, User
from security import hash_password, verify_password
from storage.base import Repository
from storage.local import LocalStorage

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6


def is_valid_email(email: str) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email) is not None


def _same_email(a: Optional[str], b: Optional[str]) -> bool:
    return (a or "").strip().lower() == (b or "").strip().lower()


class MockAuthBackend:
    """Authentification locale. La session écrit le marqueur de connexion."""

    persists_session_marker = True

    def __init__(self, users: Repository, messages: Repository):
        self.users = users
        self.messages = messages

    def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get_by_id(user_id)

    def sign_in(self, email: str, password: str) -> User:
        logging.info(f"Tentative de connexion (mode local) pour {email}")
        for user in self.users.get_all():
            if _same_email(user.email, email) and verify_password(password, user.password):
                if not permissions.can_sign_in(user):
                    raise AuthError(AuthErrorKind.ACCOUNT_INACTIVE)
                return user
        raise AuthError(AuthErrorKind.INVALID_CREDENTIALS)

    def create_account(self, data: SignUpData) -> User:
        """Crée le compte sans ouvrir de session (inscription ou création par un admin)."""
        if not is_valid_email(data.email):
            raise AuthError(AuthErrorKind.INVALID_EMAIL_FORMAT)
        if len(data.password or "") < MIN_PASSWORD_LENGTH:
            raise AuthError(AuthErrorKind.WEAK_CREDENTIAL)
        if any(_same_email(user.email, data.email) for user in self.users.get_all()):
            raise AuthError(AuthErrorKind.EMAIL_ALREADY_IN_USE)

        user = User(
            id=self.users.new_id(),
            email=data.email.strip(),
            password=hash_password(data.password),
            full_name=data.full_name,
            phone=data.phone,
            role=data.role,
            is_active=getattr(data, "is_active", True),
        )
        self.users.add(user)
        logging.info(f"Compte local créé: {user.email} ({user.role.value})")
        return user

    def sign_up(self, data: SignUpData) -> User:
        user = self.create_account(data)
        notify_registration(self.users, self.messages, user)
        return user

    def sign_out(self):
        pass

    def reset_password(self, email: str):
        if not any(_same_email(user.email, email) for user in self.users.get_all()):
            raise AuthError(AuthErrorKind.NO_ACCOUNT_FOUND)
        # Aucun email n'est envoyé en mode local
        logging.info(f"Réinitialisation du mot de passe simulée pour {email}")


class RemoteAuthBackend:
    """
    Authentification distante. Le credential du fournisseur (refresh token compris)
    est conservé dans le stockage local pour restaurer la session au redémarrage.
    """

    persists_session_marker = False

    def __init__(self, provider, users: Repository, storage: LocalStorage):
        self.provider = provider
        self.users = users
        self.storage = storage

    def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get_by_id(user_id)

    def _load_profile(self, uid: str) -> User:
        try:
            user = self.users.get_by_id(uid)
        except PyMongoError as e:
            logging.error(f"Lecture du profil {uid} impossible: {e}")
            raise AuthError(AuthErrorKind.NETWORK_ERROR)
        if user is None:
            raise AuthError(AuthErrorKind.USER_NOT_FOUND)
        if not permissions.can_sign_in(user):
            raise AuthError(AuthErrorKind.ACCOUNT_DISABLED)
        return user

    def _save_credential(self, credential):
        self.storage.set_item(REMOTE_CREDENTIAL_KEY, json.dumps(credential._asdict()))

    def sign_in(self, email: str, password: str) -> User:
        logging.info(f"Tentative de connexion (mode distant) pour {email}")
        credential = self.provider.sign_in(email, password)
        user = self._load_profile(credential.uid)
        self._save_credential(credential)
        return user

    def _register(self, data: SignUpData):
        credential = self.provider.sign_up(data.email, data.password)
        user = User(
            id=credential.uid,
            email=credential.email or data.email,
            full_name=data.full_name,
            phone=data.phone,
            role=data.role,
            is_active=getattr(data, "is_active", True),
        )
        try:
            self.users.add(user)
        except PyMongoError as e:
            logging.error(f"Création du profil {user.id} impossible: {e}")
            raise AuthError(AuthErrorKind.NETWORK_ERROR)
        logging.info(f"Compte distant créé: {user.email} ({user.role.value})")
        return user, credential

    def create_account(self, data: SignUpData) -> User:
        user, _ = self._register(data)
        return user

    def sign_up(self, data: SignUpData) -> User:
        # Pas de message aux administrateurs en mode distant
        user, credential = self._register(data)
        self._save_credential(credential)
        return user

    def sign_out(self):
        self.storage.remove_item(REMOTE_CREDENTIAL_KEY)

    def reset_password(self, email: str):
        try:
            self.provider.send_password_reset(email)
        except AuthError as e:
            if e.kind == AuthErrorKind.USER_NOT_FOUND:
                raise AuthError(AuthErrorKind.NO_ACCOUNT_FOUND) from e
            raise

    def restore(self) -> Optional[User]:
        raw = self.storage.get_item(REMOTE_CREDENTIAL_KEY)
        if not raw:
            return None
        try:
            refresh_token = json.loads(raw)["refresh_token"]
        except (ValueError, KeyError, TypeError) as e:
            logging.warning(f"Credential distant illisible, session non restaurée: {e}")
            return None
        credential = self.provider.refresh(refresh_token)
        user = self._load_profile(credential.uid)
        self._save_credential(credential)
        return user
