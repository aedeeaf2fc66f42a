"""
Notifications envoyées aux administrateurs sous forme de messages.
Un message "diffusé" est éclaté en une copie par administrateur.
"""
import logging
from typing import Iterable, List, Optional

from schemas import Message, Ticket, User, UserRole
from storage.base import Repository


def notify_admins(users: Repository, messages: Repository, sender_id: str, subject: str,
                  content: str, project_id: Optional[str] = None,
                  exclude_ids: Iterable[str] = ()) -> List[Message]:
    """
    Crée un message par administrateur. Chaque copie est écrite séparément :
    une erreur d'écriture interrompt l'envoi et les copies déjà écrites restent en place.
    """
    excluded = set(exclude_ids)
    admins = [user for user in users.get_all() if user.role == UserRole.admin and user.id not in excluded]
    sent = []
    for admin in admins:
        message = Message(
            id=messages.new_id(),
            sender_id=sender_id,
            recipient_id=admin.id,
            subject=subject,
            content=content,
            project_id=project_id,
            is_read=False,
            is_broadcast=False,
        )
        messages.add(message)
        sent.append(message)
    logging.info(f"Notification '{subject}' envoyée à {len(sent)} administrateur(s)")
    return sent


def notify_registration(users: Repository, messages: Repository, new_user: User) -> List[Message]:
    role = new_user.role.value if isinstance(new_user.role, UserRole) else new_user.role
    return notify_admins(
        users,
        messages,
        sender_id=new_user.id,
        subject="Nouvelle inscription",
        content=f"{new_user.full_name or new_user.email} ({new_user.email}) vient de créer un compte avec le rôle {role}.",
        exclude_ids=[new_user.id],
    )


def notify_ticket_resolution(users: Repository, messages: Repository, ticket: Ticket,
                             resolver: User) -> List[Message]:
    content = f"Le ticket \"{ticket.title}\" a été résolu par {resolver.full_name or resolver.email}."
    if ticket.resolution_notes:
        content += f"\n\nNotes de résolution : {ticket.resolution_notes}"
    return notify_admins(
        users,
        messages,
        sender_id=resolver.id,
        subject=f"Ticket résolu : {ticket.title}",
        content=content,
        project_id=ticket.project_id,
    )
