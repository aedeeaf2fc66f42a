from enum import Enum
from typing import Optional


class AuthErrorKind(str, Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    ACCOUNT_INACTIVE = "account_inactive"
    ACCOUNT_DISABLED = "account_disabled"
    USER_NOT_FOUND = "user_not_found"
    WRONG_PASSWORD = "wrong_password"
    EMAIL_ALREADY_IN_USE = "email_already_in_use"
    WEAK_CREDENTIAL = "weak_credential"
    INVALID_EMAIL_FORMAT = "invalid_email_format"
    RATE_LIMITED = "rate_limited"
    NETWORK_ERROR = "network_error"
    MISCONFIGURED_BACKEND = "misconfigured_backend"
    NO_ACCOUNT_FOUND = "no_account_found"
    UNKNOWN = "unknown"


# Messages lisibles affichés à l'utilisateur (jamais les codes bruts du fournisseur)
AUTH_ERROR_MESSAGES = {
    AuthErrorKind.INVALID_CREDENTIALS: "Email ou mot de passe incorrect.",
    AuthErrorKind.ACCOUNT_INACTIVE: "Votre compte est inactif. Veuillez contacter un administrateur.",
    AuthErrorKind.ACCOUNT_DISABLED: "Ce compte a été désactivé. Veuillez contacter un administrateur.",
    AuthErrorKind.USER_NOT_FOUND: "Aucun compte n'est associé à cet email.",
    AuthErrorKind.WRONG_PASSWORD: "Mot de passe incorrect.",
    AuthErrorKind.EMAIL_ALREADY_IN_USE: "Email déjà utilisé.",
    AuthErrorKind.WEAK_CREDENTIAL: "Le mot de passe doit contenir au moins 6 caractères.",
    AuthErrorKind.INVALID_EMAIL_FORMAT: "Adresse email invalide.",
    AuthErrorKind.RATE_LIMITED: "Trop de tentatives. Veuillez réessayer plus tard.",
    AuthErrorKind.NETWORK_ERROR: "Erreur réseau. Vérifiez votre connexion et réessayez.",
    AuthErrorKind.MISCONFIGURED_BACKEND: "Le service d'authentification n'est pas configuré.",
    AuthErrorKind.NO_ACCOUNT_FOUND: "Aucun compte trouvé pour cet email.",
    AuthErrorKind.UNKNOWN: "Une erreur inattendue est survenue. Veuillez réessayer.",
}

# Code HTTP renvoyé par l'API pour chaque type d'erreur
AUTH_ERROR_STATUS = {
    AuthErrorKind.INVALID_CREDENTIALS: 401,
    AuthErrorKind.USER_NOT_FOUND: 401,
    AuthErrorKind.WRONG_PASSWORD: 401,
    AuthErrorKind.ACCOUNT_INACTIVE: 403,
    AuthErrorKind.ACCOUNT_DISABLED: 403,
    AuthErrorKind.EMAIL_ALREADY_IN_USE: 400,
    AuthErrorKind.WEAK_CREDENTIAL: 400,
    AuthErrorKind.INVALID_EMAIL_FORMAT: 400,
    AuthErrorKind.NO_ACCOUNT_FOUND: 404,
    AuthErrorKind.RATE_LIMITED: 429,
    AuthErrorKind.NETWORK_ERROR: 503,
    AuthErrorKind.MISCONFIGURED_BACKEND: 500,
    AuthErrorKind.UNKNOWN: 500,
}


class AuthError(Exception):
    """Erreur d'authentification dont le type reste distinguable (kind)."""

    def __init__(self, kind: AuthErrorKind, message: Optional[str] = None):
        self.kind = kind
        self.message = message or AUTH_ERROR_MESSAGES[kind]
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return AUTH_ERROR_STATUS.get(self.kind, 500)
