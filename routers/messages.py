from fastapi import APIRouter, Depends, HTTPException, Response

import permissions
import schemas
from dependencies import get_current_user, get_data_store
from notifications import notify_admins
from storage import DataStore

router = APIRouter()


def get_message_or_404(data: DataStore, message_id: str, user: schemas.User) -> schemas.Message:
    message = data.messages.get_by_id(message_id)
    if not message:
        raise HTTPException(status_code=404, detail="Message non trouvé")
    if not permissions.can_view_message(user, message):
        raise HTTPException(status_code=403, detail="Vous n'avez pas accès à ce message")
    return message


@router.get("/", summary="Messages envoyés et reçus")
def list_messages(
    data: DataStore = Depends(get_data_store),
    current_user: schemas.User = Depends(get_current_user)
):
    messages = data.messages.get_by_user(current_user.id, current_user.role)
    messages.sort(key=lambda m: m.created_at, reverse=True)
    return [message.to_document() for message in messages]


@router.get("/{message_id}")
def read_message(
    message_id: str,
    data: DataStore = Depends(get_data_store),
    current_user: schemas.User = Depends(get_current_user)
):
    """Lire un message le marque comme lu si le lecteur en est le destinataire."""
    message = get_message_or_404(data, message_id, current_user)
    if message.recipient_id == current_user.id and not message.is_read:
        message = data.messages.update(message_id, {"is_read": True}) or message
    return message.to_document()


@router.post("/", summary="Envoyer un message", status_code=201)
def send_message(
    message: schemas.MessageCreate,
    data: DataStore = Depends(get_data_store),
    current_user: schemas.User = Depends(get_current_user)
):
    if message.is_broadcast:
        # Un message diffusé devient une copie par administrateur
        sent = notify_admins(
            data.users, data.messages,
            sender_id=current_user.id,
            subject=message.subject,
            content=message.content,
            project_id=message.project_id,
            exclude_ids=[current_user.id],
        )
        return [m.to_document() for m in sent]

    if not message.recipient_id:
        raise HTTPException(status_code=400, detail="Un destinataire est requis")
    if data.users.get_by_id(message.recipient_id) is None:
        raise HTTPException(status_code=404, detail="Destinataire non trouvé")

    new_message = schemas.Message(
        id=data.messages.new_id(),
        sender_id=current_user.id,
        recipient_id=message.recipient_id,
        subject=message.subject,
        content=message.content,
        project_id=message.project_id,
    )
    data.messages.add(new_message)
    return [new_message.to_document()]


@router.patch("/{message_id}/read", summary="Marquer un message comme lu")
def mark_as_read(
    message_id: str,
    data: DataStore = Depends(get_data_store),
    current_user: schemas.User = Depends(get_current_user)
):
    message = get_message_or_404(data, message_id, current_user)
    if message.recipient_id != current_user.id and not permissions.is_admin(current_user):
        raise HTTPException(status_code=403, detail="Seul le destinataire peut marquer ce message comme lu")
    updated = data.messages.update(message_id, {"is_read": True})
    if updated is None:
        raise HTTPException(status_code=404, detail="Message non trouvé")
    return updated.to_document()


@router.delete("/{message_id}", summary="Supprimer un message", status_code=204)
def delete_message(
    message_id: str,
    data: DataStore = Depends(get_data_store),
    current_user: schemas.User = Depends(get_current_user)
):
    get_message_or_404(data, message_id, current_user)
    if not data.messages.remove(message_id):
        raise HTTPException(status_code=404, detail="Message non trouvé")
    return Response(status_code=204)
