from fastapi import APIRouter, Depends

import schemas
from dependencies import get_current_user, get_data_store
from schemas import ProjectStatus, TicketStatus, UserRole
from storage import DataStore

router = APIRouter()


def count(items, predicate) -> int:
    return sum(1 for item in items if predicate(item))


def admin_stats(data: DataStore, tickets: list, projects: list) -> dict:
    return {
        "totalProjects": len(projects),
        "activeProjects": count(projects, lambda p: p.status == ProjectStatus.active),
        "totalUsers": len(data.users.get_all()),
        "openTickets": count(tickets, lambda t: t.status in (TicketStatus.open, TicketStatus.in_progress)),
    }


def developer_stats(tickets: list, projects: list) -> dict:
    return {
        "assignedProjects": len(projects),
        "openTickets": count(tickets, lambda t: t.status == TicketStatus.open),
        "inProgressTickets": count(tickets, lambda t: t.status == TicketStatus.in_progress),
        "resolvedTickets": count(tickets, lambda t: t.status == TicketStatus.resolved),
    }


def coordinator_stats(data: DataStore, user: schemas.User, tickets: list, projects: list) -> dict:
    records = data.social_media_analytics.get_by_user(user.id, user.role)
    return {
        "assignedProjects": len(projects),
        "openTickets": count(tickets, lambda t: t.status in (TicketStatus.open, TicketStatus.in_progress)),
        "totalReach": sum(r.reach for r in records),
        "totalEngagement": sum(r.engagement for r in records),
        "totalPosts": sum(r.posts for r in records),
    }


def client_stats(tickets: list, projects: list) -> dict:
    return {
        "myProjects": len(projects),
        "activeProjects": count(projects, lambda p: p.status == ProjectStatus.active),
        "activeTickets": count(tickets, lambda t: t.status in (TicketStatus.open, TicketStatus.in_progress)),
        "resolvedTickets": count(tickets, lambda t: t.status == TicketStatus.resolved),
        "closedTickets": count(tickets, lambda t: t.status == TicketStatus.closed),
    }


@router.get("/", summary="Statistiques du tableau de bord selon le rôle")
def get_dashboard(
    data: DataStore = Depends(get_data_store),
    current_user: schemas.User = Depends(get_current_user)
):
    projects = data.projects.get_by_user(current_user.id, current_user.role)
    tickets = data.tickets.get_by_user(current_user.id, current_user.role)

    if current_user.role == UserRole.admin:
        stats = admin_stats(data, tickets, projects)
    elif current_user.role == UserRole.web_developer:
        stats = developer_stats(tickets, projects)
    elif current_user.role == UserRole.social_media_coordinator:
        stats = coordinator_stats(data, current_user, tickets, projects)
    else:
        stats = client_stats(tickets, projects)

    return {
        "role": current_user.role.value,
        "stats": stats,
        "recentProjects": [p.to_document() for p in projects[:5]],
        "recentTickets": [t.to_document() for t in tickets[:5]],
    }
