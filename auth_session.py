"""
Session d'authentification du processus.

    SIGNED_OUT -> SIGNING_IN -> SIGNED_IN -> SIGNING_OUT -> SIGNED_OUT
    SIGNED_OUT -> SIGNING_UP -> SIGNED_IN

Un échec de connexion ou d'inscription ramène à SIGNED_OUT sans utilisateur courant.
"""
import json
import logging
from enum import Enum
from typing import Optional

import permissions
from config import CURRENT_USER_KEY
from errors import AuthError
from schemas import SignUpData, User, public_user
from storage.local import LocalStorage


class SessionState(str, Enum):
    SIGNED_OUT = "signed_out"
    SIGNING_IN = "signing_in"
    SIGNING_UP = "signing_up"
    SIGNED_IN = "signed_in"
    SIGNING_OUT = "signing_out"


class AuthSession:

    def __init__(self, backend, storage: LocalStorage):
        self.backend = backend
        self.storage = storage
        self.state = SessionState.SIGNED_OUT
        self.current_user: Optional[User] = None
        self.loading = False

    @property
    def is_signed_in(self) -> bool:
        return self.state == SessionState.SIGNED_IN and self.current_user is not None

    def _signed_out(self):
        self.current_user = None
        self.state = SessionState.SIGNED_OUT

    def _signed_in(self, user: User):
        self.current_user = user
        # Le marqueur est écrit en dernier : s'il échoue, la session n'est pas ouverte
        if self.backend.persists_session_marker:
            self.storage.set_item(CURRENT_USER_KEY, json.dumps(public_user(user)))
        self.state = SessionState.SIGNED_IN

    def sign_in(self, email: str, password: str) -> User:
        self.state = SessionState.SIGNING_IN
        try:
            user = self.backend.sign_in(email, password)
            self._signed_in(user)
        except Exception:
            self._signed_out()
            raise
        logging.info(f"Utilisateur connecté: {user.email}")
        return user

    def sign_up(self, data: SignUpData) -> User:
        self.state = SessionState.SIGNING_UP
        try:
            user = self.backend.sign_up(data)
            self._signed_in(user)
        except Exception:
            self._signed_out()
            raise
        logging.info(f"Nouvel utilisateur inscrit et connecté: {user.email}")
        return user

    def sign_out(self):
        """Ne lève jamais : l'utilisateur et le marqueur sont effacés quoi qu'il arrive."""
        self.state = SessionState.SIGNING_OUT
        try:
            self.backend.sign_out()
        except Exception as e:
            logging.error(f"Erreur du service d'authentification à la déconnexion: {e}")
        try:
            self.storage.remove_item(CURRENT_USER_KEY)
        except Exception as e:
            logging.error(f"Impossible d'effacer le marqueur de session: {e}")
        self._signed_out()

    def reset_password(self, email: str):
        self.backend.reset_password(email)

    def restore(self) -> Optional[User]:
        """Rouvre la session précédente au démarrage, si elle existe encore."""
        if self.backend.persists_session_marker:
            user = self._read_marker()
        else:
            self.loading = True
            try:
                user = self.backend.restore()
            except AuthError as e:
                logging.warning(f"Session distante non restaurée: {e.message}")
                user = None
            finally:
                self.loading = False
        if user is None:
            self._signed_out()
            return None
        self.current_user = user
        self.state = SessionState.SIGNED_IN
        logging.info(f"Session restaurée pour {user.email}")
        return user

    def _read_marker(self) -> Optional[User]:
        try:
            raw = self.storage.get_item(CURRENT_USER_KEY)
            if not raw:
                return None
            user_id = json.loads(raw)["id"]
        except (ValueError, KeyError, TypeError) as e:
            logging.warning(f"Marqueur de session illisible: {e}")
            return None
        # Relecture du compte : une désactivation entre-temps ferme la session
        user = self.backend.get_user(user_id)
        if user is None or not permissions.can_sign_in(user):
            return None
        return user

    # --- Prédicats de capacité pour l'utilisateur courant ---

    def is_admin(self) -> bool:
        return self.is_signed_in and permissions.is_admin(self.current_user)

    def has_role(self, *roles) -> bool:
        return self.is_signed_in and permissions.has_role(self.current_user, *roles)

    def can_access(self, resource, kind: Optional[str] = None) -> bool:
        return self.is_signed_in and permissions.can_access(self.current_user, resource, kind)

    def can_access_project(self, project) -> bool:
        return self.is_signed_in and permissions.can_access_project(self.current_user, project)

    def can_manage_ticket(self, ticket) -> bool:
        return self.is_signed_in and permissions.can_manage_ticket(self.current_user, ticket)

    def can_view_message(self, message) -> bool:
        return self.is_signed_in and permissions.can_view_message(self.current_user, message)

    def snapshot(self) -> dict:
        return {
            "state": self.state.value,
            "loading": self.loading,
            "user": public_user(self.current_user) if self.current_user else None,
        }
