# backend/focus_challenge/store/memory_store.py
# Store documentaire en mémoire (mêmes sémantiques que Mongo) : tests et STORE_BACKEND=memory.

from __future__ import annotations

import copy
import logging
from collections import defaultdict
from typing import Any, Callable, Optional

from focus_challenge.core.utils import utcnow
from focus_challenge.store.base import (
    SERVER_TIMESTAMP,
    BatchOperation,
    DocumentStore,
    SnapshotCallback,
    Unsubscribe,
)

logger = logging.getLogger(__name__)


def _sort_key(field: str):
    # None (ou champ absent) avant toute valeur, comme le tri Mongo
    def key(doc: dict[str, Any]):
        value = doc.get(field)
        return (value is not None, value if value is not None else 0)

    return key


class MemoryDocumentStore(DocumentStore):
    """Implémentation en mémoire du `DocumentStore`.

    Description:
        Les documents sont copiés en profondeur à l'entrée et à la sortie, les
        abonnés sont notifiés de façon synchrone après chaque écriture, et un batch
        est appliqué sur une copie des collections puis substitué (tout ou rien).

    Args:
        clock (Callable[[], datetime]): Horloge utilisée pour résoudre `SERVER_TIMESTAMP`.
    """

    def __init__(self, clock: Callable = utcnow):
        self._clock = clock
        self._collections: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)
        self._subscribers: dict[tuple[str, str], list[SnapshotCallback]] = defaultdict(list)

    # ------------------------------------------------------------------ helpers
    def _resolve(self, data: dict[str, Any]) -> dict[str, Any]:
        now = self._clock()
        return {
            k: (now if v is SERVER_TIMESTAMP else copy.deepcopy(v))
            for k, v in data.items()
        }

    def _notify(self, collection: str, doc_id: str) -> None:
        doc = self._collections[collection].get(doc_id)
        for callback in list(self._subscribers.get((collection, doc_id), [])):
            try:
                callback(copy.deepcopy(doc))
            except Exception:
                logger.exception(f"Subscriber failed for {collection}/{doc_id}")

    @staticmethod
    def _matches(doc: dict[str, Any], filters: Optional[dict[str, Any]]) -> bool:
        return all(doc.get(k) == v for k, v in (filters or {}).items())

    # ------------------------------------------------------------------ API
    async def get_document(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        doc = self._collections[collection].get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def set_document(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        doc = self._resolve(data)
        doc["_id"] = doc_id
        self._collections[collection][doc_id] = doc
        self._notify(collection, doc_id)

    async def update_fields(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
        expect: Optional[dict[str, Any]] = None,
    ) -> bool:
        doc = self._collections[collection].get(doc_id)
        if doc is None or not self._matches(doc, expect):
            return False
        doc.update(self._resolve(fields))
        self._notify(collection, doc_id)
        return True

    async def delete_document(self, collection: str, doc_id: str) -> bool:
        existed = self._collections[collection].pop(doc_id, None) is not None
        if existed:
            self._notify(collection, doc_id)
        return existed

    async def query(
        self,
        collection: str,
        filters: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        docs = [
            copy.deepcopy(doc)
            for doc in self._collections[collection].values()
            if self._matches(doc, filters)
        ]
        if order_by:
            docs.sort(key=_sort_key(order_by), reverse=descending)
        return docs

    def subscribe(self, collection: str, doc_id: str, callback: SnapshotCallback) -> Unsubscribe:
        key = (collection, doc_id)
        self._subscribers[key].append(callback)
        callback(copy.deepcopy(self._collections[collection].get(doc_id)))

        def unsubscribe() -> None:
            if callback in self._subscribers[key]:
                self._subscribers[key].remove(callback)

        return unsubscribe

    async def batch_write(self, operations: list[BatchOperation]) -> None:
        staged = copy.deepcopy(self._collections)
        for op in operations:
            coll = staged[op.collection]
            if op.kind == "set":
                doc = self._resolve(op.data)
                doc["_id"] = op.doc_id
                coll[op.doc_id] = doc
            elif op.kind == "update":
                if op.doc_id not in coll:
                    raise KeyError(f"{op.collection}/{op.doc_id} does not exist")
                coll[op.doc_id].update(self._resolve(op.data))
            else:
                coll.pop(op.doc_id, None)

        self._collections = staged
        for key in {(op.collection, op.doc_id) for op in operations}:
            self._notify(*key)

    async def ping(self) -> None:
        return None
