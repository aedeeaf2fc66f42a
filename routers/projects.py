from fastapi import APIRouter, Depends, HTTPException, Response

import permissions
import schemas
from dependencies import get_current_admin_user, get_current_user, get_data_store
from storage import DataStore

router = APIRouter()


def get_project_or_404(data: DataStore, project_id: str, user: schemas.User) -> schemas.Project:
    project = data.projects.get_by_id(project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Projet non trouvé")
    if not permissions.can_access_project(user, project):
        raise HTTPException(status_code=403, detail="Vous n'avez pas accès à ce projet")
    return project


def check_assignee(data: DataStore, user_id, role: schemas.UserRole, label: str):
    """Vérifie que l'id référence un utilisateur existant avec le bon rôle."""
    if not user_id:
        return
    user = data.users.get_by_id(user_id)
    if user is None or user.role != role:
        raise HTTPException(status_code=400, detail=f"{label} invalide : {user_id}")


def check_assignees(data: DataStore, fields: dict):
    check_assignee(data, fields.get("client_id"), schemas.UserRole.client, "Client")
    check_assignee(data, fields.get("web_developer_id"), schemas.UserRole.web_developer, "Développeur web")
    check_assignee(
        data, fields.get("social_media_coordinator_id"),
        schemas.UserRole.social_media_coordinator, "Coordinateur réseaux sociaux"
    )


@router.get("/", summary="Projets visibles par l'utilisateur")
def list_projects(
    data: DataStore = Depends(get_data_store),
    current_user: schemas.User = Depends(get_current_user)
):
    projects = data.projects.get_by_user(current_user.id, current_user.role)
    return [project.to_document() for project in projects]


@router.get("/{project_id}")
def get_project(
    project_id: str,
    data: DataStore = Depends(get_data_store),
    current_user: schemas.User = Depends(get_current_user)
):
    return get_project_or_404(data, project_id, current_user).to_document()


@router.post("/", summary="Créer un projet", status_code=201)
def create_project(
    project: schemas.ProjectCreate,
    data: DataStore = Depends(get_data_store),
    current_admin: schemas.User = Depends(get_current_admin_user)
):
    fields = project.model_dump(exclude_none=True)
    check_assignees(data, fields)
    new_project = schemas.Project(id=data.projects.new_id(), **fields)
    data.projects.add(new_project)
    return new_project.to_document()


@router.put("/{project_id}", summary="Mettre à jour un projet")
def update_project(
    project_id: str,
    project_update: schemas.ProjectUpdate,
    data: DataStore = Depends(get_data_store),
    current_user: schemas.User = Depends(get_current_user)
):
    project = get_project_or_404(data, project_id, current_user)
    update_data = project_update.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="Aucune donnée à mettre à jour")
    if not permissions.can_update_project(current_user, project, update_data.keys()):
        raise HTTPException(status_code=403, detail="Vous ne pouvez pas modifier ces champs de ce projet")
    check_assignees(data, update_data)

    updated_project = data.projects.update(project_id, update_data)
    if updated_project is None:
        raise HTTPException(status_code=404, detail="Projet non trouvé")
    return updated_project.to_document()


@router.delete("/{project_id}", summary="Supprimer un projet", status_code=204)
def delete_project(
    project_id: str,
    data: DataStore = Depends(get_data_store),
    current_admin: schemas.User = Depends(get_current_admin_user)
):
    if not data.projects.remove(project_id):
        raise HTTPException(status_code=404, detail="Projet non trouvé")
    return Response(status_code=204)


@router.get("/{project_id}/tickets", summary="Tickets d'un projet")
def list_project_tickets(
    project_id: str,
    data: DataStore = Depends(get_data_store),
    current_user: schemas.User = Depends(get_current_user)
):
    get_project_or_404(data, project_id, current_user)
    visible = data.tickets.get_by_user(current_user.id, current_user.role)
    return [ticket.to_document() for ticket in visible if ticket.project_id == project_id]


@router.get("/{project_id}/analytics", summary="Statistiques d'un projet")
def list_project_analytics(
    project_id: str,
    data: DataStore = Depends(get_data_store),
    current_user: schemas.User = Depends(get_current_user)
):
    get_project_or_404(data, project_id, current_user)
    return {
        "website": [r.to_document() for r in data.website_analytics.find(project_id=project_id)],
        "socialMedia": [r.to_document() for r in data.social_media_analytics.find(project_id=project_id)],
        "monthly": [r.to_document() for r in data.monthly_analytics.find(project_id=project_id)],
    }
