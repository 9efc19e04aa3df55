# backend/focus_challenge/services/progress_service.py
# Progression des participants : création du document, bascule d'une tâche (invariant total_points), reset, suppression.

from __future__ import annotations

import logging
from typing import Optional

from focus_challenge.core.exceptions import ForbiddenOperationError, NotFoundError, TaskLockedError
from focus_challenge.models.user_progress import USERS_COLLECTION, UserProgress
from focus_challenge.services.challenge.repository import ChallengeSettingsRepository
from focus_challenge.services.tasks_service import TasksService, is_day_unlocked
from focus_challenge.store.base import SERVER_TIMESTAMP, DocumentStore

logger = logging.getLogger(__name__)


def compute_total_points(progress: dict[str, bool], points: dict[str, int]) -> int:
    """Somme des points des tâches marquées terminées (jamais négative)."""
    return max(0, sum(points.get(task_id, 0) for task_id, done in progress.items() if done))


class ProgressService:
    """Service de progression des participants.

    Description:
        `total_points` est recalculé depuis les maps `progress`/`points` à chaque
        écriture, il ne dérive donc jamais des tâches réellement cochées.
    """

    def __init__(
        self,
        store: DocumentStore,
        settings_repository: Optional[ChallengeSettingsRepository] = None,
        tasks_service: Optional[TasksService] = None,
    ):
        self.store = store
        self.settings_repository = settings_repository or ChallengeSettingsRepository(store)
        self.tasks_service = tasks_service or TasksService(store)

    async def get_user_progress(self, uid: str) -> UserProgress:
        doc = await self.store.get_document(USERS_COLLECTION, uid)
        if doc is None:
            raise NotFoundError("user", uid)
        return UserProgress.model_validate(doc)

    async def list_participants(self) -> list[UserProgress]:
        docs = await self.store.query(USERS_COLLECTION, {"role": "participant"}, order_by="name")
        return [UserProgress.model_validate(doc) for doc in docs]

    async def ensure_user_document(self, uid: str, name: str = "", email: str = "") -> UserProgress:
        """Crée le document participant à la première connexion.

        Description:
            Document existant : conservé tel quel, seul un `role` manquant est ajouté
            (`participant`). Sinon création avec des maps vides.
        """
        doc = await self.store.get_document(USERS_COLLECTION, uid)
        if doc is not None:
            if not doc.get("role"):
                await self.store.update_fields(
                    USERS_COLLECTION, uid, {"role": "participant", "updated_at": SERVER_TIMESTAMP}
                )
            return await self.get_user_progress(uid)

        await self.store.set_document(
            USERS_COLLECTION,
            uid,
            {
                "name": name,
                "email": email,
                "role": "participant",
                "progress": {},
                "points": {},
                "total_points": 0,
                "rank": 0,
                "joined_at": SERVER_TIMESTAMP,
                "updated_at": SERVER_TIMESTAMP,
            },
        )
        logger.info(f"Participant created: {uid}")
        return await self.get_user_progress(uid)

    async def update_user_progress(self, uid: str, task_id: str, completed: bool) -> UserProgress:
        """Coche/décoche une tâche pour un participant.

        Args:
            uid (str): Identifiant du participant.
            task_id (str): Identifiant de la tâche.
            completed (bool): Nouvel état.

        Returns:
            UserProgress: Progression mise à jour.

        Raises:
            TaskLockedError: Challenge inactif, en pause, ou tâche non débloquée.
            NotFoundError: Participant ou tâche introuvable.
        """
        settings = await self.settings_repository.load()
        if not settings.is_active:
            raise TaskLockedError(task_id, "Challenge is not active")
        if settings.is_paused:
            raise TaskLockedError(task_id, "Challenge is paused")

        task = await self.tasks_service.get_task(task_id)
        if not is_day_unlocked(settings, task.day_number):
            raise TaskLockedError(task_id)

        user = await self.get_user_progress(uid)
        progress = {**user.progress, task_id: completed}
        points = {**user.points, task_id: task.points if completed else 0}

        await self.store.update_fields(
            USERS_COLLECTION,
            uid,
            {
                "progress": progress,
                "points": points,
                "total_points": compute_total_points(progress, points),
                "updated_at": SERVER_TIMESTAMP,
            },
        )
        logger.info(f"Progress updated: {uid} {task_id}={'completed' if completed else 'incomplete'}")
        return await self.get_user_progress(uid)

    async def reset_participant_progress(self, uid: str) -> UserProgress:
        await self.get_user_progress(uid)
        await self.store.update_fields(
            USERS_COLLECTION,
            uid,
            {"progress": {}, "points": {}, "total_points": 0, "rank": 0, "updated_at": SERVER_TIMESTAMP},
        )
        logger.info(f"Progress reset: {uid}")
        return await self.get_user_progress(uid)

    async def delete_participant(self, uid: str) -> None:
        """Supprime définitivement un participant (les admins sont refusés)."""
        user = await self.get_user_progress(uid)
        if user.role != "participant":
            raise ForbiddenOperationError("Can only delete participants, not admin users", {"uid": uid})
        await self.store.delete_document(USERS_COLLECTION, uid)
        logger.info(f"Participant deleted: {uid}")
