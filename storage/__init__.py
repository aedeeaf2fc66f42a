"""
Composition du stockage : un dépôt par collection, local ou distant selon le mode.
Seuls les utilisateurs et les projets sont distants ; le reste reste local dans les deux modes.
"""
import logging
from typing import Optional

import permissions
from config import (
    AUTH_MODE_KEY,
    FILE_SHARES_KEY,
    MESSAGES_KEY,
    MONTHLY_ANALYTICS_KEY,
    PROJECTS_COLLECTION,
    PROJECTS_KEY,
    SOCIAL_MEDIA_ANALYTICS_KEY,
    TICKETS_KEY,
    USE_MOCK_AUTH,
    USERS_COLLECTION,
    USERS_KEY,
    WEBSITE_ANALYTICS_KEY,
)
from schemas import (
    FileShare,
    Message,
    MonthlyAnalytics,
    Project,
    SocialMediaAnalytics,
    Ticket,
    User,
    WebsiteAnalytics,
)
from storage.base import Repository, generate_id
from storage.local import LocalRepository, LocalStorage
from storage.remote import MongoRepository


def is_mock_mode(storage: LocalStorage) -> bool:
    """Le drapeau vaut "false" pour le mode distant ; toute autre valeur = mode local."""
    value = storage.get_item(AUTH_MODE_KEY)
    if value is None:
        return USE_MOCK_AUTH
    return value != "false"


def set_mock_mode(storage: LocalStorage, use_mock: bool):
    storage.set_item(AUTH_MODE_KEY, "true" if use_mock else "false")


class DataStore:
    """Regroupe les dépôts de l'application."""

    def __init__(self, users: Repository, projects: Repository, tickets: Repository,
                 messages: Repository, file_shares: Repository, website_analytics: Repository,
                 social_media_analytics: Repository, monthly_analytics: Repository,
                 remote: bool = False):
        self.users = users
        self.projects = projects
        self.tickets = tickets
        self.messages = messages
        self.file_shares = file_shares
        self.website_analytics = website_analytics
        self.social_media_analytics = social_media_analytics
        self.monthly_analytics = monthly_analytics
        self.remote = remote


def build_data_store(storage: LocalStorage, mongo_db=None) -> DataStore:
    """Avec `mongo_db`, utilisateurs et projets sont lus et écrits dans MongoDB."""
    if mongo_db is not None:
        users = MongoRepository(mongo_db, USERS_COLLECTION, User, "user", kind="user")
        projects = MongoRepository(mongo_db, PROJECTS_COLLECTION, Project, "proj", kind="project")
    else:
        users = LocalRepository(storage, USERS_KEY, User, "user", kind="user")
        projects = LocalRepository(storage, PROJECTS_KEY, Project, "proj", kind="project")

    def attached_rule(principal, record):
        return permissions.can_access_attached(principal, record, projects.get_by_id(record.project_id))

    store = DataStore(
        users=users,
        projects=projects,
        tickets=LocalRepository(storage, TICKETS_KEY, Ticket, "ticket", kind="ticket"),
        messages=LocalRepository(storage, MESSAGES_KEY, Message, "message", kind="message"),
        file_shares=LocalRepository(storage, FILE_SHARES_KEY, FileShare, "file", rule=attached_rule),
        website_analytics=LocalRepository(
            storage, WEBSITE_ANALYTICS_KEY, WebsiteAnalytics, "wa", rule=attached_rule
        ),
        social_media_analytics=LocalRepository(
            storage, SOCIAL_MEDIA_ANALYTICS_KEY, SocialMediaAnalytics, "sma", rule=attached_rule
        ),
        monthly_analytics=LocalRepository(
            storage, MONTHLY_ANALYTICS_KEY, MonthlyAnalytics, "monthly", rule=attached_rule
        ),
        remote=mongo_db is not None,
    )
    logging.info(f"Stockage configuré (utilisateurs et projets: {'MongoDB' if store.remote else 'local'})")
    return store


__all__ = [
    "DataStore",
    "LocalRepository",
    "LocalStorage",
    "MongoRepository",
    "Repository",
    "build_data_store",
    "generate_id",
    "is_mock_mode",
    "set_mock_mode",
]
