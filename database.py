# Base de données: configuration des deux stockages.
# - SQLite (via SQLAlchemy) pour le stockage local clé/valeur, équivalent du localStorage.
# - MongoDB pour le stockage distant des documents (users, projects).

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from config import LOCAL_STORAGE_URL, MONGO_URI, MONGO_DB_NAME


def create_local_engine(url: str):
    """Crée un moteur SQLAlchemy adapté au stockage local."""
    if url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        # Une base en mémoire doit partager une seule connexion
        if url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
        return create_engine(url, **options)
    return create_engine(url)


engine = create_local_engine(LOCAL_STORAGE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def create_db_and_tables(bind=None):
    # Importer les modèles pour qu'ils soient enregistrés par Base
    import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


# --- MongoDB Configuration ---
from pymongo import MongoClient
from pymongo.database import Database

# Créer le client une seule fois pour être réutilisé à travers l'application.
# connect=False : aucune connexion n'est ouverte tant que le mode distant n'est pas utilisé.
mongo_client = MongoClient(MONGO_URI, connect=False)


def get_mongo_db() -> Database:
    """
    Retourne une instance de la base de données MongoDB.
    """
    return mongo_client[MONGO_DB_NAME]
