# backend/tests/test_leaderboard.py
# Classement des participants et persistance des rangs.

import pytest

from focus_challenge.models.task import TASKS_COLLECTION
from focus_challenge.models.user_progress import USERS_COLLECTION, UserProgress
from focus_challenge.services import leaderboard_service as lb
from focus_challenge.services.leaderboard_service import LeaderboardService, rank_participants


def _user(uid: str, total: int, completed: list[str] = (), rank: int = 0) -> UserProgress:
    return UserProgress(
        uid=uid,
        name=uid.upper(),
        total_points=total,
        progress={task_id: True for task_id in completed},
        rank=rank,
    )


class TestRankParticipants:
    def test_points_then_completed_tasks(self):
        entries = rank_participants(
            [
                _user("a", 50, ["t1"]),
                _user("b", 80, ["t1"]),
                _user("c", 50, ["t1", "t2"]),
            ],
            day0_task_ids=set(),
        )

        assert [(e.user_id, e.rank) for e in entries] == [("b", 1), ("c", 2), ("a", 3)]

    def test_trial_tasks_do_not_count(self):
        entries = rank_participants(
            [_user("a", 50, ["trial", "t1"]), _user("b", 50, ["t1", "t2"])],
            day0_task_ids={"trial"},
        )

        assert [e.user_id for e in entries] == ["b", "a"]
        assert entries[1].completed_tasks == 1

    def test_unchecked_tasks_are_not_counted(self):
        user = _user("a", 10, ["t1", "t2"])
        user.progress["t3"] = False

        assert user.completed_task_ids == ["t1", "t2"]
        assert lb.completed_tasks_excluding_day0(user, {"t2"}) == 1

    def test_full_tie_keeps_input_order(self):
        entries = rank_participants([_user("x", 10), _user("y", 10)], day0_task_ids=set())
        assert [e.rank for e in entries] == [1, 2]
        assert [e.user_id for e in entries] == ["x", "y"]


class TestLeaderboardService:
    @pytest.fixture
    def service(self, store):
        return LeaderboardService(store)

    async def _add(self, store, uid, total, rank=0, role="participant", progress=None):
        await store.set_document(
            USERS_COLLECTION,
            uid,
            {"name": uid, "role": role, "total_points": total, "rank": rank, "progress": progress or {}, "points": {}},
        )

    @pytest.mark.asyncio
    async def test_no_participants(self, service):
        assert await service.update_leaderboard() == 0

    @pytest.mark.asyncio
    async def test_update_writes_ranks_once(self, service, store):
        await self._add(store, "a", 10)
        await self._add(store, "b", 30)
        await self._add(store, "admin", 999, role="admin")

        assert await service.update_leaderboard() == 2
        assert (await store.get_document(USERS_COLLECTION, "b"))["rank"] == 1
        assert (await store.get_document(USERS_COLLECTION, "a"))["rank"] == 2
        assert (await store.get_document(USERS_COLLECTION, "admin"))["rank"] == 0

        # Aucun changement : aucune écriture
        assert await service.update_leaderboard() == 0

    @pytest.mark.asyncio
    async def test_update_in_batches(self, service, store, monkeypatch):
        for i in range(lb.RANK_BATCH_SIZE + 3):
            await self._add(store, f"u{i:02d}", i)

        batches = []
        original = store.batch_write

        async def spy(operations):
            batches.append(len(operations))
            await original(operations)

        monkeypatch.setattr(store, "batch_write", spy)

        assert await service.update_leaderboard() == lb.RANK_BATCH_SIZE + 3
        assert batches == [lb.RANK_BATCH_SIZE, 3]

    @pytest.mark.asyncio
    async def test_completed_tasks_exclude_day0(self, service, store):
        await store.set_document(TASKS_COLLECTION, "trial", {"day_number": 0, "title": "Trial"})
        await self._add(store, "a", 10, progress={"trial": True, "t1": True})

        entries = await service.get_leaderboard()

        assert entries[0].completed_tasks == 1
        assert entries[0].rank == 1

    @pytest.mark.asyncio
    async def test_failure_is_swallowed(self, service, store, monkeypatch):
        await self._add(store, "a", 10)
        await self._add(store, "b", 30)

        async def broken(operations):
            raise RuntimeError("write failed")

        monkeypatch.setattr(store, "batch_write", broken)

        assert await service.update_leaderboard() == 0
