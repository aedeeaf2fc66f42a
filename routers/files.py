from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response

import permissions
import schemas
from dependencies import get_current_user, get_data_store
from storage import DataStore

router = APIRouter()


@router.get("/", summary="Fichiers partagés visibles")
def list_files(
    project_id: Optional[str] = None,
    data: DataStore = Depends(get_data_store),
    current_user: schemas.User = Depends(get_current_user)
):
    files = data.file_shares.get_by_user(current_user.id, current_user.role)
    if project_id:
        files = [f for f in files if f.project_id == project_id]
    return [f.to_document() for f in files]


@router.post("/", summary="Partager un fichier", status_code=201)
def share_file(
    file_share: schemas.FileShareCreate,
    data: DataStore = Depends(get_data_store),
    current_user: schemas.User = Depends(get_current_user)
):
    # Seules les métadonnées sont enregistrées ; le fichier est hébergé ailleurs
    project = data.projects.get_by_id(file_share.project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Projet non trouvé")
    if not permissions.can_access_project(current_user, project):
        raise HTTPException(status_code=403, detail="Vous n'avez pas accès à ce projet")

    new_file = schemas.FileShare(
        id=data.file_shares.new_id(),
        uploaded_by=current_user.id,
        **file_share.model_dump(exclude_none=True),
    )
    data.file_shares.add(new_file)
    return new_file.to_document()


@router.delete("/{file_id}", summary="Retirer un fichier partagé", status_code=204)
def delete_file(
    file_id: str,
    data: DataStore = Depends(get_data_store),
    current_user: schemas.User = Depends(get_current_user)
):
    file_share = data.file_shares.get_by_id(file_id)
    if not file_share:
        raise HTTPException(status_code=404, detail="Fichier non trouvé")
    if not (permissions.is_admin(current_user) or file_share.uploaded_by == current_user.id):
        raise HTTPException(status_code=403, detail="Seul l'auteur du partage ou un administrateur peut le retirer")
    data.file_shares.remove(file_id)
    return Response(status_code=204)
