"""
Stockage distant : une collection MongoDB par type d'enregistrement,
un document par enregistrement, adressé par son id (_id).
Chaque opération touche un seul document ; les erreurs pymongo remontent à l'appelant.
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel
from pymongo.database import Database

import permissions
from schemas import UserRole
from storage.base import Repository, normalize_patch


def _bson_value(value):
    """Convertit une valeur Python en valeur acceptée par BSON."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, BaseModel):
        return _bson_value(value.model_dump(by_alias=True, exclude_none=True))
    if isinstance(value, dict):
        return {key: _bson_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_bson_value(item) for item in value]
    return value


class MongoRepository(Repository):

    def __init__(self, db: Database, collection_name: str, model, id_prefix: str,
                 kind: Optional[str] = None):
        self.collection = db[collection_name]
        self.model = model
        self.id_prefix = id_prefix
        self.kind = kind

    def _to_model(self, document: dict):
        data = dict(document)
        data["id"] = str(data.pop("_id"))
        return self.model.model_validate(data)

    def _field_alias(self, name: str) -> str:
        if name == "id":
            return "_id"
        field = self.model.model_fields.get(name)
        return field.alias if field is not None and field.alias else name

    def get_all(self) -> list:
        return [self._to_model(document) for document in self.collection.find()]

    def get_by_id(self, item_id: str):
        document = self.collection.find_one({"_id": item_id})
        if document is None:
            return None
        return self._to_model(document)

    def get_by_user(self, user_id: str, role) -> list:
        try:
            principal = permissions.Principal(user_id, UserRole(role))
        except ValueError:
            return []
        query = permissions.ownership_query(principal, self.kind)
        if query is None:
            return []
        return [self._to_model(document) for document in self.collection.find(query)]

    def add(self, item):
        document = _bson_value(item.model_dump(by_alias=True, exclude_none=True))
        document["_id"] = document.pop("id")
        self.collection.insert_one(document)
        return item

    def update(self, item_id: str, patch: dict):
        fields = normalize_patch(self.model, patch)
        fields.pop("id", None)
        fields.pop("updated_at", None)
        changes = {self._field_alias(name): _bson_value(value) for name, value in fields.items()}
        operation = {"$currentDate": {"updatedAt": True}}
        if changes:
            operation["$set"] = changes
        result = self.collection.update_one({"_id": item_id}, operation)
        if result.matched_count == 0:
            return None
        return self.get_by_id(item_id)

    def remove(self, item_id: str) -> bool:
        result = self.collection.delete_one({"_id": item_id})
        return result.deleted_count > 0

    def find(self, **criteria) -> list:
        query = {self._field_alias(name): _bson_value(value) for name, value in criteria.items()}
        return [self._to_model(document) for document in self.collection.find(query)]
