from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request

import schemas
from auth_session import AuthSession
from dependencies import auth_error_to_http, get_current_admin_user, get_data_store, get_session
from errors import AuthError
from security import hash_password
from storage import DataStore, is_mock_mode, set_mock_mode

router = APIRouter()


def get_user_or_404(data: DataStore, user_id: str) -> schemas.User:
    user = data.users.get_by_id(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="Utilisateur non trouvé")
    return user


@router.get("/users", summary="Lister tous les utilisateurs", response_model=List[dict])
def list_users(
    data: DataStore = Depends(get_data_store),
    current_admin: schemas.User = Depends(get_current_admin_user)
):
    return [schemas.public_user(user) for user in data.users.get_all()]


@router.get("/users/{user_id}", summary="Obtenir un utilisateur par son ID")
def get_user(
    user_id: str,
    data: DataStore = Depends(get_data_store),
    current_admin: schemas.User = Depends(get_current_admin_user)
):
    return schemas.public_user(get_user_or_404(data, user_id))


@router.post("/users", summary="Créer un nouvel utilisateur", status_code=201)
def create_user(
    user: schemas.UserCreate,
    session: AuthSession = Depends(get_session),
    current_admin: schemas.User = Depends(get_current_admin_user)
):
    # Le compte est créé sans ouvrir de session ni notifier les administrateurs
    try:
        new_user = session.backend.create_account(user)
    except AuthError as e:
        raise auth_error_to_http(e)
    return schemas.public_user(new_user)


@router.put("/users/{user_id}", summary="Mettre à jour un utilisateur")
def update_user(
    user_id: str,
    user_update: schemas.UserUpdate,
    data: DataStore = Depends(get_data_store),
    current_admin: schemas.User = Depends(get_current_admin_user)
):
    get_user_or_404(data, user_id)

    # Crée un dictionnaire avec les champs à mettre à jour
    update_data = user_update.model_dump(exclude_unset=True)

    if user_update.password:
        if data.remote:
            raise HTTPException(
                status_code=400,
                detail="En mode distant, le mot de passe se change par la réinitialisation par email"
            )
        update_data["password"] = hash_password(user_update.password)
    else:
        # S'assurer de ne pas effacer le mot de passe existant si non fourni
        update_data.pop("password", None)

    if "email" in update_data:
        email = (update_data["email"] or "").strip().lower()
        if any(u.id != user_id and u.email.strip().lower() == email for u in data.users.get_all()):
            raise HTTPException(status_code=400, detail="Email déjà utilisé")

    if not update_data:
        raise HTTPException(status_code=400, detail="Aucune donnée à mettre à jour")

    updated_user = data.users.update(user_id, update_data)
    if updated_user is None:
        raise HTTPException(status_code=404, detail="Utilisateur non trouvé")
    return schemas.public_user(updated_user)


@router.patch("/users/{user_id}/active", summary="Activer ou désactiver un utilisateur")
def toggle_user_active(
    user_id: str,
    data: DataStore = Depends(get_data_store),
    current_admin: schemas.User = Depends(get_current_admin_user)
):
    user = get_user_or_404(data, user_id)
    if user.id == current_admin.id:
        raise HTTPException(status_code=400, detail="Vous ne pouvez pas désactiver votre propre compte")
    updated_user = data.users.update(user_id, {"is_active": not user.is_active})
    if updated_user is None:
        raise HTTPException(status_code=404, detail="Utilisateur non trouvé")
    return schemas.public_user(updated_user)


# --- Mode d'authentification ---

@router.get("/auth-mode", summary="Mode d'authentification enregistré")
def get_auth_mode(request: Request, current_admin: schemas.User = Depends(get_current_admin_user)):
    storage = request.app.state.storage
    return {
        "use_mock_auth": is_mock_mode(storage),
        "active_mode": "remote" if request.app.state.data.remote else "mock",
    }


@router.post("/auth-mode", summary="Changer le mode d'authentification")
def update_auth_mode(
    mode: schemas.AuthModeUpdate,
    request: Request,
    current_admin: schemas.User = Depends(get_current_admin_user)
):
    # Le mode est lu une seule fois au démarrage
    set_mock_mode(request.app.state.storage, mode.use_mock_auth)
    return {
        "use_mock_auth": mode.use_mock_auth,
        "message": "Mode d'authentification enregistré. Un redémarrage peut être nécessaire."
    }
