# backend/tests/test_memory_store.py
# Store documentaire en mémoire (requêtes, batch, CAS, abonnements).

import pytest

from focus_challenge.store.base import SERVER_TIMESTAMP, BatchOperation

from .conftest import T0


class TestMemoryDocumentStore:
    @pytest.mark.asyncio
    async def test_set_and_get_are_copies(self, store):
        await store.set_document("users", "u1", {"name": "Aisha", "progress": {}})

        doc = await store.get_document("users", "u1")
        assert doc == {"_id": "u1", "name": "Aisha", "progress": {}}

        doc["progress"]["t1"] = True
        assert (await store.get_document("users", "u1"))["progress"] == {}

    @pytest.mark.asyncio
    async def test_server_timestamp_resolved_with_clock(self, store, clock):
        await store.set_document("users", "u1", {"joined_at": SERVER_TIMESTAMP})
        clock.advance(hours=1)
        await store.update_fields("users", "u1", {"updated_at": SERVER_TIMESTAMP})

        doc = await store.get_document("users", "u1")
        assert doc["joined_at"] == T0
        assert doc["updated_at"] == clock()

    @pytest.mark.asyncio
    async def test_update_missing_document(self, store):
        assert await store.update_fields("users", "nobody", {"name": "x"}) is False
        assert await store.get_document("users", "nobody") is None

    @pytest.mark.asyncio
    async def test_update_with_expect(self, store):
        await store.set_document("settings", "challenge", {"current_day": 2, "is_active": True})

        assert await store.update_fields("settings", "challenge", {"current_day": 3}, expect={"current_day": 1}) is False
        assert (await store.get_document("settings", "challenge"))["current_day"] == 2

        assert await store.update_fields("settings", "challenge", {"current_day": 3}, expect={"current_day": 2}) is True
        assert (await store.get_document("settings", "challenge"))["current_day"] == 3

    @pytest.mark.asyncio
    async def test_delete(self, store):
        await store.set_document("tasks", "t1", {"day_number": 1})
        assert await store.delete_document("tasks", "t1") is True
        assert await store.delete_document("tasks", "t1") is False

    @pytest.mark.asyncio
    async def test_query_filters_and_orders(self, store):
        await store.set_document("users", "a", {"role": "participant", "total_points": 10})
        await store.set_document("users", "b", {"role": "participant", "total_points": 30})
        await store.set_document("users", "c", {"role": "admin", "total_points": 99})
        await store.set_document("users", "d", {"role": "participant"})

        docs = await store.query("users", {"role": "participant"}, order_by="total_points", descending=True)
        assert [d["_id"] for d in docs] == ["b", "a", "d"]

        ascending = await store.query("users", {"role": "participant"}, order_by="total_points")
        assert [d["_id"] for d in ascending] == ["d", "a", "b"]

    @pytest.mark.asyncio
    async def test_batch_is_atomic(self, store):
        await store.set_document("tasks", "t1", {"is_active": False})

        with pytest.raises(KeyError):
            await store.batch_write(
                [
                    BatchOperation(kind="update", collection="tasks", doc_id="t1", data={"is_active": True}),
                    BatchOperation(kind="update", collection="tasks", doc_id="missing", data={"is_active": True}),
                ]
            )

        assert (await store.get_document("tasks", "t1"))["is_active"] is False

    @pytest.mark.asyncio
    async def test_batch_applies_all_operations(self, store):
        await store.set_document("tasks", "t1", {"is_active": False})
        await store.set_document("tasks", "t2", {"is_active": True})

        await store.batch_write(
            [
                BatchOperation(kind="update", collection="tasks", doc_id="t1", data={"is_active": True}),
                BatchOperation(kind="delete", collection="tasks", doc_id="t2"),
                BatchOperation(kind="set", collection="tasks", doc_id="t3", data={"is_active": False}),
            ]
        )

        ids = sorted(d["_id"] for d in await store.query("tasks"))
        assert ids == ["t1", "t3"]
        assert (await store.get_document("tasks", "t1"))["is_active"] is True

    @pytest.mark.asyncio
    async def test_subscribe(self, store):
        snapshots = []
        unsubscribe = store.subscribe("settings", "challenge", snapshots.append)
        assert snapshots == [None]

        await store.set_document("settings", "challenge", {"current_day": 0})
        await store.update_fields("settings", "challenge", {"current_day": 1})
        await store.delete_document("settings", "challenge")

        assert [s["current_day"] if s else None for s in snapshots] == [None, 0, 1, None]

        unsubscribe()
        await store.set_document("settings", "challenge", {"current_day": 5})
        assert len(snapshots) == 4

    @pytest.mark.asyncio
    async def test_failing_subscriber_does_not_break_writes(self, store):
        def broken(doc):
            if doc is not None:
                raise RuntimeError("boom")

        store.subscribe("settings", "challenge", broken)
        await store.set_document("settings", "challenge", {"current_day": 0})

        assert (await store.get_document("settings", "challenge"))["current_day"] == 0
