from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from auth_session import AuthSession
from errors import AuthError
from schemas import User, UserRole
from security import decode_access_token
from storage import DataStore

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def auth_error_to_http(error: AuthError) -> HTTPException:
    """Traduit une AuthError en réponse HTTP, avec le message lisible."""
    return HTTPException(status_code=error.status_code, detail=error.message)


# --- DÉPENDANCES FASTAPI ---

def get_data_store(request: Request) -> DataStore:
    return request.app.state.data


def get_session(request: Request) -> AuthSession:
    return request.app.state.session


def get_current_user(
    token: str = Depends(oauth2_scheme),
    data: DataStore = Depends(get_data_store),
) -> User:
    """Décode le token JWT et relit l'utilisateur dans le stockage actif."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Impossible de valider les informations d'identification",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token)
        user_id: str = payload.get("sub")
        if user_id is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    user = data.users.get_by_id(user_id)
    if user is None:
        raise credentials_exception
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Votre compte est inactif. Veuillez contacter un administrateur."
        )
    return user


def get_current_admin_user(current_user: User = Depends(get_current_user)) -> User:
    """Vérifie que l'utilisateur actuel est un administrateur."""
    if current_user.role != UserRole.admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="L'opération nécessite des privilèges d'administrateur"
        )
    return current_user


def role_required(*roles: UserRole):
    """Dépendance qui n'accepte que les rôles donnés."""
    def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Votre rôle ne permet pas d'accéder à cette ressource"
            )
        return current_user
    return checker


def get_current_staff_user(
    current_user: User = Depends(
        role_required(UserRole.admin, UserRole.web_developer, UserRole.social_media_coordinator)
    ),
) -> User:
    """Vérifie que l'utilisateur fait partie de l'agence (admin, développeur ou coordinateur)."""
    return current_user
