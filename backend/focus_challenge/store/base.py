# backend/focus_challenge/store/base.py
# Interface du store documentaire (get/set/update conditionnel/delete/query/subscribe/batch) + sentinelle d'horodatage serveur.

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Literal, Optional

from pydantic import BaseModel


class _ServerTimestamp:
    """Sentinelle remplacée à l'écriture par l'horloge du store."""

    _instance: Optional["_ServerTimestamp"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()

SnapshotCallback = Callable[[Optional[dict[str, Any]]], None]
Unsubscribe = Callable[[], None]


class BatchOperation(BaseModel):
    """Opération élémentaire d'un batch atomique.

    Description:
        - `set` : écrase (ou crée) le document avec `data`
        - `update` : met à jour les champs `data` d'un document existant (échec du batch sinon)
        - `delete` : supprime le document (no-op s'il n'existe pas)
    """

    kind: Literal["set", "update", "delete"]
    collection: str
    doc_id: str
    data: dict[str, Any] = {}


class DocumentStore(ABC):
    """Accès aux documents persistés (collections `users`, `tasks`, `settings`).

    Description:
        Les documents sont des dicts dont la clé `_id` est une chaîne. Les valeurs
        `SERVER_TIMESTAMP` sont résolues par le store au moment de l'écriture.
        Les erreurs d'I/O remontent telles quelles à l'appelant.
    """

    @abstractmethod
    async def get_document(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        """Lit un document, ou None s'il n'existe pas."""

    @abstractmethod
    async def set_document(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Écrase (ou crée) le document."""

    @abstractmethod
    async def update_fields(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
        expect: Optional[dict[str, Any]] = None,
    ) -> bool:
        """Met à jour des champs d'un document existant.

        Args:
            collection (str): Nom de la collection.
            doc_id (str): Identifiant du document.
            fields (dict): Champs à écrire.
            expect (dict | None): Valeurs attendues (compare-and-swap). L'écriture n'a
                lieu que si toutes correspondent aux valeurs stockées.

        Returns:
            bool: True si le document existait (et satisfaisait `expect`) et a été écrit.
        """

    @abstractmethod
    async def delete_document(self, collection: str, doc_id: str) -> bool:
        """Supprime un document. Retourne True s'il existait."""

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        """Liste les documents dont les champs égalent `filters`, triés sur `order_by`."""

    @abstractmethod
    def subscribe(self, collection: str, doc_id: str, callback: SnapshotCallback) -> Unsubscribe:
        """S'abonne aux changements d'un document.

        Description:
            `callback` reçoit l'état courant à l'abonnement puis à chaque modification
            (None après suppression). Retourne une fonction de désabonnement.
        """

    @abstractmethod
    async def batch_write(self, operations: list[BatchOperation]) -> None:
        """Applique toutes les opérations de façon atomique (tout ou rien)."""

    async def ping(self) -> None:
        """Vérifie la disponibilité du backend (lève en cas d'échec)."""

    async def close(self) -> None:
        """Libère les ressources du backend."""
