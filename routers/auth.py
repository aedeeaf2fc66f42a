from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

import schemas
from auth_session import AuthSession
from dependencies import auth_error_to_http, get_current_admin_user, get_current_user, get_session
from errors import AuthError
from security import create_access_token

router = APIRouter()


def token_response(user: schemas.User) -> dict:
    access_token = create_access_token(data={"sub": user.id, "role": user.role.value})
    return {"access_token": access_token, "token_type": "bearer", "user": schemas.public_user(user)}


@router.post("/login", response_model=schemas.TokenWithUser)
def login(form_data: OAuth2PasswordRequestForm = Depends(), session: AuthSession = Depends(get_session)):
    """
    Connecte l'utilisateur via le mode d'authentification actif et retourne un token JWT.
    """
    try:
        user = session.sign_in(form_data.username, form_data.password)
    except AuthError as e:
        raise auth_error_to_http(e)
    return token_response(user)


@router.post("/signup", response_model=schemas.TokenWithUser, status_code=status.HTTP_201_CREATED)
def signup(data: schemas.SignUpData, session: AuthSession = Depends(get_session)):
    # Les comptes administrateurs ne se créent que depuis /admin/users
    if data.role == schemas.UserRole.admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                            detail="L'inscription ne permet pas de créer un compte administrateur.")
    try:
        user = session.sign_up(data)
    except AuthError as e:
        raise auth_error_to_http(e)
    return token_response(user)


@router.post("/logout")
def logout(session: AuthSession = Depends(get_session),
           current_user: schemas.User = Depends(get_current_user)):
    session.sign_out()
    return {"message": "Déconnexion réussie."}


@router.post("/reset-password")
def reset_password(request: schemas.PasswordResetRequest, session: AuthSession = Depends(get_session)):
    try:
        session.reset_password(request.email)
    except AuthError as e:
        raise auth_error_to_http(e)
    return {"message": "Un email de réinitialisation a été envoyé si le compte existe."}


@router.get("/me")
def read_users_me(current_user: schemas.User = Depends(get_current_user)):
    """
    Retourne les informations de l'utilisateur actuellement connecté.
    """
    return schemas.public_user(current_user)


@router.get("/session")
def read_session(session: AuthSession = Depends(get_session),
                 current_admin: schemas.User = Depends(get_current_admin_user)):
    """
    État de la session du processus (réservé aux administrateurs).
    """
    return session.snapshot()
