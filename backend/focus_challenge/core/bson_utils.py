# backend/focus_challenge/core/bson_utils.py
# Base model Mongo (Pydantic v2) : `_id` exposé en `id` côté Python, identifiants générés via bson.ObjectId.

from __future__ import annotations

from typing import Any, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict


def new_object_id() -> str:
    """Génère un identifiant de document.

    Description:
        Les documents du challenge utilisent des `_id` chaînes (l'uid du participant,
        `challenge` pour les réglages). Pour les tâches, on génère un ObjectId
        sérialisé en hex (24 caractères), triable par date de création.

    Returns:
        str: Identifiant hex de 24 caractères.
    """
    return str(ObjectId())


class MongoBaseModel(BaseModel):
    """Base Pydantic v2 pour les documents Mongo.

    Description:
        - `populate_by_name=True` : accepte `id` ou `_id` (alias) en entrée
        - `extra="ignore"` : tolère des champs hérités d'anciennes versions du document
        - `dump_mongo()` : sérialise avec les alias (`_id`) pour l'écriture en base
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def dump_mongo(self, exclude: Optional[set[str]] = None) -> dict[str, Any]:
        """Dump du modèle prêt à persister (alias `_id`, datetimes natifs)."""
        return self.model_dump(by_alias=True, exclude=exclude)

    @classmethod
    def from_mongo(cls, doc: Optional[dict[str, Any]]):
        """Construit le modèle depuis un document brut, ou None si absent."""
        if doc is None:
            return None
        return cls.model_validate(doc)
