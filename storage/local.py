"""
Stockage local : un magasin clé/valeur de chaînes (équivalent du localStorage)
et un dépôt qui range chaque collection sous une clé, sous forme de tableau JSON.
"""
import json
import logging
from typing import Callable, List, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

import permissions
from database import SessionLocal
from models import StorageEntry
from schemas import StoredModel, UserRole
from storage.base import Repository, next_timestamp, normalize_patch


class LocalStorage:
    """Magasin clé/valeur persistant. Les valeurs sont des chaînes brutes."""

    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    def get_item(self, key: str) -> Optional[str]:
        db = self.session_factory()
        try:
            entry = db.get(StorageEntry, key)
            return entry.value if entry else None
        finally:
            db.close()

    def set_item(self, key: str, value: str):
        db = self.session_factory()
        try:
            db.merge(StorageEntry(key=key, value=value))
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        finally:
            db.close()

    def remove_item(self, key: str):
        db = self.session_factory()
        try:
            entry = db.get(StorageEntry, key)
            if entry:
                db.delete(entry)
                db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        finally:
            db.close()

    def keys(self) -> List[str]:
        db = self.session_factory()
        try:
            return [entry.key for entry in db.query(StorageEntry).all()]
        finally:
            db.close()


class LocalRepository(Repository):
    """
    Une collection = une clé. Toute modification réécrit le tableau complet.

    `rule(principal, item)` remplace la règle de visibilité par défaut
    (utile pour les enregistrements rattachés à un projet).
    """

    def __init__(self, storage: LocalStorage, key: str, model, id_prefix: str,
                 kind: Optional[str] = None, rule: Optional[Callable] = None):
        self.storage = storage
        self.key = key
        self.model = model
        self.id_prefix = id_prefix
        self.kind = kind
        self.rule = rule

    def _read(self) -> list:
        """
        Entrées du tableau stocké : un enregistrement validé, ou la valeur brute
        quand elle ne passe pas la validation. Les valeurs brutes sont réécrites
        telles quelles pour ne jamais perdre de données.
        """
        # Une lecture ne lève jamais : données absentes ou illisibles = collection vide
        try:
            raw = self.storage.get_item(self.key)
        except SQLAlchemyError as e:
            logging.warning(f"Lecture impossible de la clé {self.key}: {e}")
            return []
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except ValueError as e:
            logging.warning(f"JSON invalide sous la clé {self.key}, collection ignorée: {e}")
            return []
        if not isinstance(data, list):
            logging.warning(f"Un tableau JSON est attendu sous la clé {self.key}, collection ignorée")
            return []
        entries = []
        for position, item in enumerate(data):
            try:
                entries.append(self.model.model_validate(item))
            except ValidationError as e:
                logging.warning(f"Enregistrement invalide ignoré sous la clé {self.key} (position {position}): {e}")
                entries.append(item)
        return entries

    def _load(self) -> list:
        return [entry for entry in self._read() if isinstance(entry, StoredModel)]

    def _save(self, entries: list):
        documents = [entry.to_document() if isinstance(entry, StoredModel) else entry for entry in entries]
        self.storage.set_item(self.key, json.dumps(documents))

    def get_all(self) -> list:
        return self._load()

    def get_by_id(self, item_id: str):
        for item in self._load():
            if item.id == item_id:
                return item
        return None

    def get_by_user(self, user_id: str, role) -> list:
        try:
            principal = permissions.Principal(user_id, UserRole(role))
        except ValueError:
            return []
        if self.rule is not None:
            return [item for item in self._load() if self.rule(principal, item)]
        return [item for item in self._load() if permissions.can_access(principal, item, self.kind)]

    def add(self, item):
        entries = self._read()
        entries.append(item)
        self._save(entries)
        return item

    def update(self, item_id: str, patch: dict):
        entries = self._read()
        for index, item in enumerate(entries):
            if not isinstance(item, StoredModel) or item.id != item_id:
                continue
            data = item.model_dump()
            data.update(normalize_patch(self.model, patch))
            data["id"] = item.id
            if "updated_at" in self.model.model_fields:
                data["updated_at"] = next_timestamp(item.updated_at)
            updated = self.model.model_validate(data)
            entries[index] = updated
            self._save(entries)
            return updated
        return None

    def remove(self, item_id: str) -> bool:
        entries = self._read()
        remaining = [
            entry for entry in entries
            if not (isinstance(entry, StoredModel) and entry.id == item_id)
        ]
        if len(remaining) == len(entries):
            return False
        self._save(remaining)
        return True
