"""
Statistiques des projets.
Les relevés site web et réseaux sociaux sont en ajout seul ;
les statistiques mensuelles sont gérées par l'administrateur.
"""
from fastapi import APIRouter, Depends, HTTPException, Response

import permissions
import schemas
from dependencies import get_current_admin_user, get_current_staff_user, get_current_user, get_data_store
from storage import DataStore

router = APIRouter()


def get_recordable_project(data: DataStore, project_id: str, user: schemas.User) -> schemas.Project:
    project = data.projects.get_by_id(project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Projet non trouvé")
    if not permissions.can_record_analytics(user, project):
        raise HTTPException(status_code=403, detail="Vous ne pouvez pas saisir de statistiques pour ce projet")
    return project


# --- Site web ---

@router.get("/website")
def list_website_analytics(
    data: DataStore = Depends(get_data_store),
    current_user: schemas.User = Depends(get_current_user)
):
    records = data.website_analytics.get_by_user(current_user.id, current_user.role)
    return [record.to_document() for record in records]


@router.post("/website", status_code=201)
def record_website_analytics(
    record: schemas.WebsiteAnalyticsCreate,
    data: DataStore = Depends(get_data_store),
    current_user: schemas.User = Depends(get_current_staff_user)
):
    get_recordable_project(data, record.project_id, current_user)
    new_record = schemas.WebsiteAnalytics(
        id=data.website_analytics.new_id(),
        recorded_by=current_user.id,
        **record.model_dump(exclude_none=True),
    )
    data.website_analytics.add(new_record)
    return new_record.to_document()


# --- Réseaux sociaux ---

@router.get("/social-media")
def list_social_media_analytics(
    data: DataStore = Depends(get_data_store),
    current_user: schemas.User = Depends(get_current_user)
):
    records = data.social_media_analytics.get_by_user(current_user.id, current_user.role)
    return [record.to_document() for record in records]


@router.post("/social-media", status_code=201)
def record_social_media_analytics(
    record: schemas.SocialMediaAnalyticsCreate,
    data: DataStore = Depends(get_data_store),
    current_user: schemas.User = Depends(get_current_staff_user)
):
    get_recordable_project(data, record.project_id, current_user)
    new_record = schemas.SocialMediaAnalytics(
        id=data.social_media_analytics.new_id(),
        recorded_by=current_user.id,
        **record.model_dump(exclude_none=True),
    )
    data.social_media_analytics.add(new_record)
    return new_record.to_document()


# --- Statistiques mensuelles ---

@router.get("/monthly")
def list_monthly_analytics(
    data: DataStore = Depends(get_data_store),
    current_user: schemas.User = Depends(get_current_user)
):
    records = data.monthly_analytics.get_by_user(current_user.id, current_user.role)
    records.sort(key=lambda r: r.month, reverse=True)
    return [record.to_document() for record in records]


@router.post("/monthly", status_code=201)
def create_monthly_analytics(
    record: schemas.MonthlyAnalyticsCreate,
    data: DataStore = Depends(get_data_store),
    current_admin: schemas.User = Depends(get_current_admin_user)
):
    project = data.projects.get_by_id(record.project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Projet non trouvé")
    new_record = schemas.MonthlyAnalytics(
        id=data.monthly_analytics.new_id(),
        project_name=project.name,
        recorded_by=current_admin.id,
        **record.model_dump(exclude_none=True),
    )
    data.monthly_analytics.add(new_record)
    return new_record.to_document()


@router.put("/monthly/{record_id}")
def update_monthly_analytics(
    record_id: str,
    record_update: schemas.MonthlyAnalyticsUpdate,
    data: DataStore = Depends(get_data_store),
    current_admin: schemas.User = Depends(get_current_admin_user)
):
    update_data = record_update.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="Aucune donnée à mettre à jour")
    if update_data.get("project_id"):
        project = data.projects.get_by_id(update_data["project_id"])
        if not project:
            raise HTTPException(status_code=404, detail="Projet non trouvé")
        update_data["project_name"] = project.name

    updated = data.monthly_analytics.update(record_id, update_data)
    if updated is None:
        raise HTTPException(status_code=404, detail="Statistiques mensuelles non trouvées")
    return updated.to_document()


@router.delete("/monthly/{record_id}", status_code=204)
def delete_monthly_analytics(
    record_id: str,
    data: DataStore = Depends(get_data_store),
    current_admin: schemas.User = Depends(get_current_admin_user)
):
    if not data.monthly_analytics.remove(record_id):
        raise HTTPException(status_code=404, detail="Statistiques mensuelles non trouvées")
    return Response(status_code=204)
