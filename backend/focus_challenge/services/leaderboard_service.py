# backend/focus_challenge/services/leaderboard_service.py
# Classement des participants (points puis tâches terminées hors jour 0) et mise à jour des rangs par lots.

from __future__ import annotations

import logging
from typing import Iterable

from focus_challenge.models.task import TASKS_COLLECTION
from focus_challenge.models.user_progress import USERS_COLLECTION, LeaderboardEntry, UserProgress
from focus_challenge.store.base import SERVER_TIMESTAMP, BatchOperation, DocumentStore

logger = logging.getLogger(__name__)

RANK_BATCH_SIZE = 10


def completed_tasks_excluding_day0(user: UserProgress, day0_task_ids: set[str]) -> int:
    """Nombre de tâches terminées, sans compter les tâches du jour d'essai."""
    return sum(1 for task_id in user.completed_task_ids if task_id not in day0_task_ids)


def rank_participants(participants: Iterable[UserProgress], day0_task_ids: set[str]) -> list[LeaderboardEntry]:
    """Trie par `total_points` décroissant puis `completed_tasks` décroissant ; rangs 1..n.

    Description:
        Tri stable : à égalité parfaite, l'ordre d'entrée est conservé.
    """
    entries = [
        LeaderboardEntry(
            user_id=user.uid,
            name=user.name,
            email=user.email,
            total_points=user.total_points,
            completed_tasks=completed_tasks_excluding_day0(user, day0_task_ids),
            rank=0,
            last_updated=user.updated_at or user.joined_at,
        )
        for user in participants
    ]
    entries.sort(key=lambda e: (-e.total_points, -e.completed_tasks))
    for index, entry in enumerate(entries):
        entry.rank = index + 1
    return entries


class LeaderboardService:
    def __init__(self, store: DocumentStore):
        self.store = store

    async def _participants(self) -> list[UserProgress]:
        docs = await self.store.query(
            USERS_COLLECTION, {"role": "participant"}, order_by="total_points", descending=True
        )
        return [UserProgress.model_validate(doc) for doc in docs]

    async def _day0_task_ids(self) -> set[str]:
        docs = await self.store.query(TASKS_COLLECTION, {"day_number": 0})
        return {doc["_id"] for doc in docs}

    async def get_leaderboard(self) -> list[LeaderboardEntry]:
        participants = await self._participants()
        return rank_participants(participants, await self._day0_task_ids())

    async def update_leaderboard(self) -> int:
        """Persiste les rangs si au moins un a changé.

        Description:
            Écrit par lots de 10. Les erreurs sont loguées et jamais relancées :
            un rafraîchissement du classement ne doit pas bloquer la progression.

        Returns:
            int: Nombre de participants mis à jour (0 si rien à faire ou en cas d'échec).
        """
        try:
            participants = await self._participants()
            if not participants:
                logger.info("No participants found, skipping leaderboard update")
                return 0

            current_ranks = {user.uid: user.rank for user in participants}
            entries = rank_participants(participants, await self._day0_task_ids())
            if all(current_ranks[entry.user_id] == entry.rank for entry in entries):
                logger.info("No ranking changes detected, skipping leaderboard update")
                return 0

            for i in range(0, len(entries), RANK_BATCH_SIZE):
                chunk = entries[i:i + RANK_BATCH_SIZE]
                await self.store.batch_write(
                    [
                        BatchOperation(
                            kind="update",
                            collection=USERS_COLLECTION,
                            doc_id=entry.user_id,
                            data={"rank": entry.rank, "updated_at": SERVER_TIMESTAMP},
                        )
                        for entry in chunk
                    ]
                )
            logger.info(f"Leaderboard updated: {len(entries)} participants")
            return len(entries)
        except Exception as e:
            logger.error(f"Leaderboard update failed, progress was saved: {e}")
            return 0
