# backend/focus_challenge/store/mongo_store.py
# Store documentaire MongoDB (Motor) : transactions pour les batchs, change streams pour les abonnements.

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorClientSession
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from focus_challenge.store.base import (
    SERVER_TIMESTAMP,
    BatchOperation,
    DocumentStore,
    SnapshotCallback,
    Unsubscribe,
)

logger = logging.getLogger(__name__)


def _split_timestamps(fields: dict[str, Any]) -> tuple[dict[str, Any], list[str]]:
    """Sépare les champs littéraux des champs `SERVER_TIMESTAMP`."""
    plain = {k: v for k, v in fields.items() if v is not SERVER_TIMESTAMP}
    stamps = [k for k, v in fields.items() if v is SERVER_TIMESTAMP]
    return plain, stamps


def _update_ops(fields: dict[str, Any]) -> dict[str, Any]:
    plain, stamps = _split_timestamps(fields)
    update: dict[str, Any] = {}
    if plain:
        update["$set"] = plain
    if stamps:
        update["$currentDate"] = {k: True for k in stamps}
    return update


def _replace_pipeline(doc_id: str, data: dict[str, Any]) -> list[dict[str, Any]]:
    """Pipeline `$replaceWith` : écrase le document, `SERVER_TIMESTAMP` devient `$$NOW`.

    Description:
        Un `replace_one` ne sait pas résoudre l'heure serveur. Les valeurs sont
        enveloppées dans `$literal` pour qu'une chaîne commençant par `$` ne soit
        pas interprétée comme un chemin de champ.
    """
    replacement: dict[str, Any] = {"_id": {"$literal": doc_id}}
    for key, value in data.items():
        if key == "_id":
            continue
        replacement[key] = "$$NOW" if value is SERVER_TIMESTAMP else {"$literal": value}
    return [{"$replaceWith": replacement}]


class MongoDocumentStore(DocumentStore):
    """Implémentation MongoDB du `DocumentStore`.

    Description:
        - `batch_write` s'exécute dans une transaction multi-documents (replica set requis)
        - `subscribe` ouvre un change stream filtré sur le document, dans une tâche asyncio
        - les datetimes sont retournés timezone-aware (client créé avec `tz_aware=True`)

    Args:
        client (AsyncIOMotorClient): Client Motor.
        db_name (str): Nom de la base.
    """

    def __init__(self, client: AsyncIOMotorClient, db_name: str):
        self.client = client
        self.db = client[db_name]

    async def get_document(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        return await self.db[collection].find_one({"_id": doc_id})

    async def set_document(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        await self.db[collection].update_one(
            {"_id": doc_id}, _replace_pipeline(doc_id, data), upsert=True
        )

    async def update_fields(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
        expect: Optional[dict[str, Any]] = None,
    ) -> bool:
        result = await self.db[collection].update_one(
            {"_id": doc_id, **(expect or {})}, _update_ops(fields)
        )
        return result.matched_count == 1

    async def delete_document(self, collection: str, doc_id: str) -> bool:
        result = await self.db[collection].delete_one({"_id": doc_id})
        return result.deleted_count == 1

    async def query(
        self,
        collection: str,
        filters: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        cursor = self.db[collection].find(filters or {})
        if order_by:
            cursor = cursor.sort(order_by, DESCENDING if descending else ASCENDING)
        return await cursor.to_list(length=None)

    async def _apply(self, op: BatchOperation, session: AsyncIOMotorClientSession) -> None:
        coll = self.db[op.collection]
        if op.kind == "set":
            await coll.update_one(
                {"_id": op.doc_id}, _replace_pipeline(op.doc_id, op.data), upsert=True, session=session
            )
        elif op.kind == "update":
            result = await coll.update_one({"_id": op.doc_id}, _update_ops(op.data), session=session)
            if result.matched_count != 1:
                # Lever ici annule la transaction
                raise KeyError(f"{op.collection}/{op.doc_id} does not exist")
        else:
            await coll.delete_one({"_id": op.doc_id}, session=session)

    async def batch_write(self, operations: list[BatchOperation]) -> None:
        if not operations:
            return
        async with await self.client.start_session() as session:
            async with session.start_transaction():
                for op in operations:
                    await self._apply(op, session)

    def subscribe(self, collection: str, doc_id: str, callback: SnapshotCallback) -> Unsubscribe:
        task = asyncio.create_task(self._watch(collection, doc_id, callback))

        def unsubscribe() -> None:
            task.cancel()

        return unsubscribe

    async def _watch(self, collection: str, doc_id: str, callback: SnapshotCallback) -> None:
        """Boucle d'écoute du change stream (snapshot initial puis une notification par changement)."""
        pipeline = [{"$match": {"documentKey._id": doc_id}}]
        try:
            callback(await self.get_document(collection, doc_id))
            async with self.db[collection].watch(pipeline, full_document="updateLookup") as stream:
                async for change in stream:
                    if change["operationType"] == "delete":
                        callback(None)
                    else:
                        callback(change.get("fullDocument"))
        except PyMongoError as e:
            logger.error(f"Change stream on {collection}/{doc_id} stopped: {e}")

    async def ping(self) -> None:
        await self.db.command("ping")

    async def close(self) -> None:
        self.client.close()
