"""
Sécurité : hachage des mots de passe et jetons JWT.
"""
import hmac
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt
from passlib.context import CryptContext

from config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES

# pbkdf2_sha256 pour éviter les soucis de dépendance avec bcrypt
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, stored_password: Optional[str]) -> bool:
    """
    Vérifie un mot de passe.
    Les anciennes données du stockage local contiennent des mots de passe en clair :
    ils sont comparés directement.
    """
    if not stored_password:
        return False
    if pwd_context.identify(stored_password) is None:
        return hmac.compare_digest(plain_password.encode(), stored_password.encode())
    return pwd_context.verify(plain_password, stored_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire_time = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire_time})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Décode un jeton. Lève jose.JWTError s'il est invalide ou expiré."""
    return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
