"""
Interface commune des deux stockages (local et distant).
"""
import random
import string
import time
from abc import ABC, abstractmethod
from datetime import timedelta, timezone
from typing import List, Optional

from schemas import utcnow

BASE36_ALPHABET = string.digits + string.ascii_lowercase


def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_id(prefix: str) -> str:
    """Identifiant du type "<prefix>-<horodatage base36>-<aléatoire base36>"."""
    timestamp = to_base36(int(time.time() * 1000))
    suffix = "".join(random.choices(BASE36_ALPHABET, k=7))
    return f"{prefix}-{timestamp}-{suffix}"


def next_timestamp(previous=None):
    """Horodatage courant, toujours strictement postérieur à `previous`."""
    now = utcnow()
    if previous is not None:
        if previous.tzinfo is None:
            previous = previous.replace(tzinfo=timezone.utc)
        if now <= previous:
            now = previous + timedelta(microseconds=1)
    return now


def normalize_patch(model, patch: dict) -> dict:
    """Ramène les clés d'un patch (snake_case ou camelCase) aux noms des attributs du modèle."""
    aliases = {field.alias: name for name, field in model.model_fields.items() if field.alias}
    return {aliases.get(key, key): value for key, value in patch.items()}


class Repository(ABC):
    """
    Accès à une collection d'enregistrements.
    Les lectures renvoient toujours de nouveaux objets : modifier le résultat
    ne modifie pas le stockage.
    """
    model = None
    id_prefix = "item"

    def new_id(self) -> str:
        return generate_id(self.id_prefix)

    @abstractmethod
    def get_all(self) -> List:
        ...

    @abstractmethod
    def get_by_id(self, item_id: str):
        ...

    @abstractmethod
    def get_by_user(self, user_id: str, role) -> List:
        """Enregistrements visibles par cet utilisateur selon son rôle."""

    @abstractmethod
    def add(self, item):
        ...

    @abstractmethod
    def update(self, item_id: str, patch: dict) -> Optional[object]:
        """Fusion superficielle du patch. None si l'id n'existe pas."""

    @abstractmethod
    def remove(self, item_id: str) -> bool:
        ...

    def find(self, **criteria) -> List:
        """Filtre simple par égalité sur les attributs (ex: project_id=...)."""
        return [
            item for item in self.get_all()
            if all(getattr(item, name, None) == value for name, value in criteria.items())
        ]
