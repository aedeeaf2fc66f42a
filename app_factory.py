# Imports from standard library or third-party packages
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from sqlalchemy.exc import SQLAlchemyError

# Imports from this project
from auth_backends import MockAuthBackend, RemoteAuthBackend
from auth_session import AuthSession
from config import SEED_DEFAULT_USERS
from database import create_db_and_tables, get_mongo_db
from firebase_auth import FirebaseAuthProvider
from schemas import User, UserRole
from security import hash_password
from storage import LocalStorage, build_data_store, is_mock_mode
from storage.base import Repository
from routers import (
    admin,
    analytics,
    auth,
    dashboard,
    files,
    messages,
    projects,
    tickets,
)

# Comptes de démonstration du mode local
DEFAULT_USERS = [
    {"id": "user-1", "email": "admin@system.com", "password": "admin123",
     "full_name": "Admin User", "role": UserRole.admin},
    {"id": "user-2", "email": "dev@system.com", "password": "dev123",
     "full_name": "Web Developer", "role": UserRole.web_developer},
    {"id": "user-3", "email": "social@system.com", "password": "social123",
     "full_name": "Social Media Coordinator", "role": UserRole.social_media_coordinator},
    {"id": "user-5", "email": "client@system.com", "password": "client123",
     "full_name": "Michael Client", "role": UserRole.client},
]


def create_default_users(users: Repository):
    """Crée les comptes de démonstration si aucun utilisateur n'existe encore."""
    if users.get_all():
        return
    for account in DEFAULT_USERS:
        users.add(User(**{**account, "password": hash_password(account["password"])}))
    logging.info(f"{len(DEFAULT_USERS)} comptes de démonstration créés")


def storage_error_handler(request: Request, exc: Exception):
    logging.error(f"Erreur d'écriture dans le stockage ({request.url.path}): {exc}")
    return JSONResponse(status_code=500, content={"detail": "Erreur d'écriture dans le stockage."})


def create_app(storage: Optional[LocalStorage] = None, mongo_db=None, auth_provider=None,
               seed_default_users: bool = SEED_DEFAULT_USERS):
    """Crée et configure l'instance de l'application FastAPI."""
    if storage is None:
        create_db_and_tables()
        storage = LocalStorage()

    # Le mode est lu une seule fois : le changer demande un redémarrage
    use_mock_auth = is_mock_mode(storage)
    if use_mock_auth:
        data = build_data_store(storage)
        backend = MockAuthBackend(data.users, data.messages)
    else:
        data = build_data_store(storage, mongo_db if mongo_db is not None else get_mongo_db())
        backend = RemoteAuthBackend(auth_provider or FirebaseAuthProvider(), data.users, storage)
    session = AuthSession(backend, storage)
    logging.info(f"Mode d'authentification: {'local' if use_mock_auth else 'distant'}")

    app = FastAPI(
        title="Marketing Management API",
        description="API de gestion des projets web et réseaux sociaux de l'agence",
        version="1.0.0"
    )
    app.state.storage = storage
    app.state.data = data
    app.state.session = session

    # Événements de démarrage
    @app.on_event("startup")
    def on_startup():
        if use_mock_auth and seed_default_users:
            create_default_users(data.users)
        session.restore()

    app.add_exception_handler(SQLAlchemyError, storage_error_handler)
    app.add_exception_handler(PyMongoError, storage_error_handler)

    # Configuration CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Doit être restreint en production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Inclusion des routeurs
    app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
    app.include_router(admin.router, prefix="/admin", tags=["Admin"])
    app.include_router(projects.router, prefix="/projects", tags=["Projects"])
    app.include_router(tickets.router, prefix="/tickets", tags=["Tickets"])
    app.include_router(messages.router, prefix="/messages", tags=["Messages"])
    app.include_router(analytics.router, prefix="/analytics", tags=["Analytics"])
    app.include_router(files.router, prefix="/files", tags=["Files"])
    app.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])

    @app.get("/", tags=["Root"])
    def read_root():
        return {"message": "Bienvenue sur le backend Marketing Management !"}

    return app
