import copy
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from pymongo.errors import DuplicateKeyError
from sqlalchemy.orm import sessionmaker

from database import create_db_and_tables, create_local_engine
from schemas import User, UserRole
from security import hash_password
from storage import LocalStorage, build_data_store


@pytest.fixture
def storage():
    """Stockage clé/valeur sur une base SQLite en mémoire, vide à chaque test."""
    engine = create_local_engine("sqlite://")
    create_db_and_tables(bind=engine)
    yield LocalStorage(sessionmaker(autocommit=False, autoflush=False, bind=engine))
    engine.dispose()


@pytest.fixture
def data(storage):
    return build_data_store(storage)


class FakeCollection:
    """Sous-ensemble de l'API d'une collection pymongo, en mémoire."""

    def __init__(self):
        self.documents = {}
        self.updates = []

    def _matches(self, document, query):
        for key, expected in query.items():
            if key == "$or":
                if not any(self._matches(document, clause) for clause in expected):
                    return False
            elif document.get(key) != expected:
                return False
        return True

    def find(self, query=None):
        return [copy.deepcopy(d) for d in self.documents.values() if self._matches(d, query or {})]

    def find_one(self, query):
        found = self.find(query)
        return found[0] if found else None

    def insert_one(self, document):
        if document["_id"] in self.documents:
            raise DuplicateKeyError(f"E11000 duplicate key: {document['_id']}")
        self.documents[document["_id"]] = copy.deepcopy(document)
        return SimpleNamespace(inserted_id=document["_id"])

    def update_one(self, query, update):
        self.updates.append(copy.deepcopy(update))
        found = self.find(query)
        if not found:
            return SimpleNamespace(matched_count=0, modified_count=0)
        document = self.documents[found[0]["_id"]]
        document.update(update.get("$set", {}))
        for field in update.get("$currentDate", {}):
            document[field] = datetime.now(timezone.utc)
        return SimpleNamespace(matched_count=1, modified_count=1)

    def delete_one(self, query):
        found = self.find(query)
        if not found:
            return SimpleNamespace(deleted_count=0)
        del self.documents[found[0]["_id"]]
        return SimpleNamespace(deleted_count=1)


class FakeMongoDatabase:
    def __init__(self):
        self.collections = {}

    def __getitem__(self, name):
        return self.collections.setdefault(name, FakeCollection())


@pytest.fixture
def mongo_db():
    return FakeMongoDatabase()


@pytest.fixture
def remote_data(storage, mongo_db):
    return build_data_store(storage, mongo_db)


@pytest.fixture
def accounts(data):
    """Un utilisateur par rôle (un second développeur pour les contrôles d'accès)."""
    users = {
        "admin": User(id="admin-1", email="admin@system.com", password=hash_password("admin123"),
                      full_name="Admin User", role=UserRole.admin),
        "dev": User(id="dev-1", email="dev@system.com", password=hash_password("dev123"),
                    full_name="Dev One", role=UserRole.web_developer),
        "dev2": User(id="dev-2", email="dev2@system.com", password=hash_password("dev123"),
                     full_name="Dev Two", role=UserRole.web_developer),
        "coordinator": User(id="coord-1", email="social@system.com", password=hash_password("social123"),
                            full_name="Social Coordinator", role=UserRole.social_media_coordinator),
        "client": User(id="client-1", email="client@system.com", password=hash_password("client123"),
                       full_name="Michael Client", role=UserRole.client),
    }
    for user in users.values():
        data.users.add(user)
    return users
