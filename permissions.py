"""
Règles de capacité par rôle.

C'est le seul endroit où le rôle d'un utilisateur décide de ce qu'il peut voir ou gérer.
Les fonctions sont pures (aucune I/O) et ne lèvent jamais d'exception :
une paire rôle/ressource non autorisée renvoie simplement False.

La table OWNERSHIP_RULES est utilisée de deux façons :
- can_access() l'évalue sur un enregistrement (stockage local, contrôles de l'API) ;
- ownership_query() la traduit en filtre MongoDB (stockage distant).
"""
from collections import namedtuple
from typing import Iterable, Optional

from schemas import (
    FileShare,
    Message,
    PROJECT_METRIC_FIELDS,
    Project,
    ProjectType,
    StoredModel,
    Ticket,
    User,
    UserRole,
)

# Utilisateur réduit à ce dont les règles ont besoin
Principal = namedtuple("Principal", ["id", "role"])

# Marqueur remplacé par l'id de l'utilisateur au moment de l'évaluation
USER_ID = object()

NON_ADMIN_ROLES = (UserRole.web_developer, UserRole.social_media_coordinator, UserRole.client)

# type de ressource -> rôle -> alternatives (une seule doit être satisfaite).
# Les noms de champs sont ceux du document stocké (camelCase).
# L'administrateur n'apparaît pas : il a accès à tout.
OWNERSHIP_RULES = {
    "project": {
        UserRole.web_developer: [{"webDeveloperId": USER_ID}],
        UserRole.social_media_coordinator: [
            {"socialMediaCoordinatorId": USER_ID, "projectType": ProjectType.social_media.value}
        ],
        UserRole.client: [{"clientId": USER_ID}],
    },
    "ticket": {
        UserRole.web_developer: [{"assignedTo": USER_ID}],
        UserRole.social_media_coordinator: [{"assignedTo": USER_ID}],
        UserRole.client: [{"createdBy": USER_ID}],
    },
    "user": {role: [{"id": USER_ID}] for role in NON_ADMIN_ROLES},
    "message": {role: [{"recipientId": USER_ID}, {"senderId": USER_ID}] for role in NON_ADMIN_ROLES},
}

RESOURCE_KINDS = {
    Project: "project",
    Ticket: "ticket",
    User: "user",
    Message: "message",
}


def resource_kind(resource) -> Optional[str]:
    return RESOURCE_KINDS.get(type(resource))


def _role(user) -> Optional[UserRole]:
    try:
        return UserRole(getattr(user, "role", None))
    except ValueError:
        return None


def _is_identified(user) -> bool:
    return user is not None and bool(getattr(user, "id", None)) and _role(user) is not None


def is_admin(user) -> bool:
    return _is_identified(user) and _role(user) == UserRole.admin


def has_role(user, *roles: UserRole) -> bool:
    return _is_identified(user) and _role(user) in roles


def _as_document(resource) -> dict:
    if isinstance(resource, StoredModel):
        return resource.to_document()
    if isinstance(resource, dict):
        return resource
    return {}


def _matches(conditions: dict, document: dict, user_id: str) -> bool:
    for field, expected in conditions.items():
        value = user_id if expected is USER_ID else expected
        if document.get(field) != value:
            return False
    return True


def can_access(user, resource, kind: Optional[str] = None) -> bool:
    """Vrai si l'utilisateur peut voir/gérer la ressource (projet, ticket, utilisateur, message)."""
    if not _is_identified(user) or resource is None:
        return False
    if _role(user) == UserRole.admin:
        return True
    kind = kind or resource_kind(resource)
    alternatives = OWNERSHIP_RULES.get(kind, {}).get(_role(user), [])
    document = _as_document(resource)
    return any(_matches(conditions, document, user.id) for conditions in alternatives)


def can_access_project(user, project) -> bool:
    return can_access(user, project, "project")


def can_manage_ticket(user, ticket) -> bool:
    return can_access(user, ticket, "ticket")


def can_view_message(user, message) -> bool:
    return can_access(user, message, "message")


def can_view_user(user, target) -> bool:
    return can_access(user, target, "user")


def can_sign_in(user) -> bool:
    """Un compte inactif ne peut pas se connecter, quel que soit son rôle."""
    return user is not None and bool(getattr(user, "is_active", False))


def can_access_attached(user, record, project) -> bool:
    """
    Enregistrements rattachés à un projet (statistiques, fichiers partagés) :
    ils suivent la règle du projet. Un client ne voit que les fichiers publics
    ou ceux qu'il a lui-même déposés.
    """
    if is_admin(user):
        return True
    if not can_access_project(user, project):
        return False
    if isinstance(record, FileShare) and _role(user) == UserRole.client:
        return record.is_public or record.uploaded_by == user.id
    return True


def can_update_project(user, project, fields: Iterable[str]) -> bool:
    """L'admin modifie tout ; le coordinateur uniquement les métriques de ses projets réseaux sociaux."""
    if is_admin(user):
        return True
    if has_role(user, UserRole.social_media_coordinator) and can_access_project(user, project):
        return set(fields) <= PROJECT_METRIC_FIELDS
    return False


def can_create_ticket(user, project) -> bool:
    if is_admin(user):
        return True
    return has_role(user, UserRole.client) and can_access_project(user, project)


def can_record_analytics(user, project) -> bool:
    if is_admin(user):
        return True
    return (
        has_role(user, UserRole.web_developer, UserRole.social_media_coordinator)
        and can_access_project(user, project)
    )


def ownership_query(user, kind: str) -> Optional[dict]:
    """
    Traduit la règle en filtre MongoDB.
    Retourne {} pour l'admin (tout voir) et None quand rien n'est visible.
    """
    if not _is_identified(user):
        return None
    if _role(user) == UserRole.admin:
        return {}
    alternatives = OWNERSHIP_RULES.get(kind, {}).get(_role(user), [])
    if not alternatives:
        return None
    clauses = []
    for conditions in alternatives:
        clause = {}
        for field, expected in conditions.items():
            clause["_id" if field == "id" else field] = user.id if expected is USER_ID else expected
        clauses.append(clause)
    if len(clauses) == 1:
        return clauses[0]
    return {"$or": clauses}
