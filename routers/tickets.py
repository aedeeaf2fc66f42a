import logging

from fastapi import APIRouter, Depends, HTTPException, Response

import permissions
import schemas
from dependencies import get_current_admin_user, get_current_user, get_data_store
from notifications import notify_ticket_resolution
from schemas import TicketStatus, utcnow
from storage import DataStore

router = APIRouter()

RESOLVED_STATUSES = (TicketStatus.resolved, TicketStatus.closed)


def get_ticket_or_404(data: DataStore, ticket_id: str, user: schemas.User) -> schemas.Ticket:
    ticket = data.tickets.get_by_id(ticket_id)
    if not ticket:
        raise HTTPException(status_code=404, detail="Ticket non trouvé")
    if not permissions.can_manage_ticket(user, ticket):
        raise HTTPException(status_code=403, detail="Vous n'avez pas accès à ce ticket")
    return ticket


@router.get("/", summary="Tickets visibles par l'utilisateur")
def list_tickets(
    data: DataStore = Depends(get_data_store),
    current_user: schemas.User = Depends(get_current_user)
):
    tickets = data.tickets.get_by_user(current_user.id, current_user.role)
    return [ticket.to_document() for ticket in tickets]


@router.get("/{ticket_id}")
def get_ticket(
    ticket_id: str,
    data: DataStore = Depends(get_data_store),
    current_user: schemas.User = Depends(get_current_user)
):
    return get_ticket_or_404(data, ticket_id, current_user).to_document()


@router.post("/", summary="Ouvrir un ticket", status_code=201)
def create_ticket(
    ticket: schemas.TicketCreate,
    data: DataStore = Depends(get_data_store),
    current_user: schemas.User = Depends(get_current_user)
):
    project = data.projects.get_by_id(ticket.project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Projet non trouvé")
    if not permissions.can_create_ticket(current_user, project):
        raise HTTPException(status_code=403, detail="Vous ne pouvez pas ouvrir de ticket sur ce projet")

    new_ticket = schemas.Ticket(
        id=data.tickets.new_id(),
        created_by=current_user.id,
        **ticket.model_dump(exclude_none=True),
    )
    data.tickets.add(new_ticket)
    logging.info(f"Ticket {new_ticket.id} créé par {current_user.email} sur le projet {project.id}")
    return new_ticket.to_document()


@router.put("/{ticket_id}", summary="Mettre à jour un ticket")
def update_ticket(
    ticket_id: str,
    ticket_update: schemas.TicketUpdate,
    data: DataStore = Depends(get_data_store),
    current_user: schemas.User = Depends(get_current_user)
):
    ticket = get_ticket_or_404(data, ticket_id, current_user)
    update_data = ticket_update.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="Aucune donnée à mettre à jour")
    if "assigned_to" in update_data and not permissions.is_admin(current_user):
        raise HTTPException(status_code=403, detail="Seul un administrateur peut assigner un ticket")

    # Aucun cycle de statut imposé : seule la date de résolution est renseignée
    new_status = update_data.get("status")
    if new_status in RESOLVED_STATUSES and not update_data.get("resolved_at"):
        update_data["resolved_at"] = utcnow()

    updated_ticket = data.tickets.update(ticket_id, update_data)
    if updated_ticket is None:
        raise HTTPException(status_code=404, detail="Ticket non trouvé")

    if new_status == TicketStatus.resolved and ticket.status != TicketStatus.resolved:
        notify_ticket_resolution(data.users, data.messages, updated_ticket, current_user)
    return updated_ticket.to_document()


@router.delete("/{ticket_id}", summary="Supprimer un ticket", status_code=204)
def delete_ticket(
    ticket_id: str,
    data: DataStore = Depends(get_data_store),
    current_admin: schemas.User = Depends(get_current_admin_user)
):
    if not data.tickets.remove(ticket_id):
        raise HTTPException(status_code=404, detail="Ticket non trouvé")
    return Response(status_code=204)
