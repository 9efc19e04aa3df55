# backend/focus_challenge/services/tasks_service.py
# Gestion des tâches : CRUD, import en masse, génération/seed par défaut et filtrage par règle de déblocage.

from __future__ import annotations

import logging
from typing import Iterable, Optional

from focus_challenge.core.bson_utils import new_object_id
from focus_challenge.core.exceptions import NotFoundError
from focus_challenge.models.challenge_settings import ChallengeSettings
from focus_challenge.models.task import (
    TASKS_COLLECTION,
    BulkImportResult,
    Task,
    TaskCreate,
    TaskReorderItem,
)
from focus_challenge.services.task_templates import DEFAULT_TASKS, TASK_TEMPLATES, TRIAL_TASK
from focus_challenge.store.base import SERVER_TIMESTAMP, BatchOperation, DocumentStore

logger = logging.getLogger(__name__)

BATCH_SIZE = 10


def is_day_unlocked(settings: Optional[ChallengeSettings], day_number: int) -> bool:
    """Règle de déblocage (fait autorité sur le drapeau `is_active` des tâches).

    Description:
        Débloqué si le challenge est actif, non en pause, et `day_number <= current_day` ;
        le jour 0 (essai) n'est débloqué que si `trial_enabled`.
    """
    if settings is None or not settings.is_active or settings.is_paused:
        return False
    if day_number == 0:
        return settings.trial_enabled
    return day_number <= settings.current_day


def count_available_challenge_tasks(settings: ChallengeSettings, tasks: Iterable[Task]) -> int:
    """Nombre de tâches comptées dans le challenge : jours 1..max_day planifiés (jamais le jour 0)."""
    if not settings.challenge_days:
        return 0
    day_numbers = {day.day_number for day in settings.challenge_days}
    max_day = max(day_numbers)
    return sum(1 for task in tasks if 1 <= task.day_number <= max_day and task.day_number in day_numbers)


def generate_tasks_for_challenge(total_days: int) -> list[TaskCreate]:
    """Génère une tâche d'essai (jour 0) puis une tâche par jour 1..total_days (modèles en boucle)."""
    tasks = [TaskCreate(**TRIAL_TASK)]
    for day_number in range(1, total_days + 1):
        template = TASK_TEMPLATES[(day_number - 1) % len(TASK_TEMPLATES)]
        tasks.append(TaskCreate(day_number=day_number, **template))
    return tasks


class TasksService:
    """Service des tâches quotidiennes."""

    def __init__(self, store: DocumentStore):
        self.store = store

    # ------------------------------------------------------------------ lecture
    async def get_all_tasks(self, auto_initialize: bool = False) -> list[Task]:
        """Liste toutes les tâches triées par jour (seed par défaut si vide et demandé)."""
        docs = await self.store.query(TASKS_COLLECTION, order_by="day_number")
        if not docs and auto_initialize:
            await self.initialize_default_tasks()
            docs = await self.store.query(TASKS_COLLECTION, order_by="day_number")
        return [Task.model_validate(doc) for doc in docs]

    async def get_task(self, task_id: str) -> Task:
        doc = await self.store.get_document(TASKS_COLLECTION, task_id)
        if doc is None:
            raise NotFoundError("task", task_id)
        return Task.model_validate(doc)

    async def get_available_tasks(self, settings: Optional[ChallengeSettings]) -> list[Task]:
        """Tâches débloquées pour les participants (vide si challenge inactif ou en pause)."""
        tasks = await self.get_all_tasks(auto_initialize=True)
        return [task for task in tasks if is_day_unlocked(settings, task.day_number)]

    # ------------------------------------------------------------------ seed
    async def initialize_default_tasks(self) -> int:
        """Insère le jeu de tâches par défaut (jours 0 à 14) en un batch."""
        operations = [
            BatchOperation(
                kind="set",
                collection=TASKS_COLLECTION,
                doc_id=new_object_id(),
                data=self._new_task_document(TaskCreate(**data)),
            )
            for data in DEFAULT_TASKS
        ]
        await self.store.batch_write(operations)
        logger.info(f"Default tasks initialized: {len(operations)}")
        return len(operations)

    @staticmethod
    def _new_task_document(data: TaskCreate) -> dict:
        return {
            **data.model_dump(),
            "is_active": False,  # les nouvelles tâches démarrent inactives
            "created_at": SERVER_TIMESTAMP,
            "updated_at": SERVER_TIMESTAMP,
        }

    # ------------------------------------------------------------------ écriture
    async def create_or_update_task(self, data: TaskCreate, task_id: Optional[str] = None) -> Task:
        """Crée une tâche (sans `task_id`) ou met à jour son contenu.

        Raises:
            NotFoundError: Mise à jour d'une tâche inexistante.
        """
        if task_id:
            written = await self.store.update_fields(
                TASKS_COLLECTION, task_id, {**data.model_dump(), "updated_at": SERVER_TIMESTAMP}
            )
            if not written:
                raise NotFoundError("task", task_id)
            logger.info(f"Task updated: {task_id} ({data.title})")
        else:
            task_id = new_object_id()
            await self.store.set_document(TASKS_COLLECTION, task_id, self._new_task_document(data))
            logger.info(f"Task created: {task_id} ({data.title})")
        return await self.get_task(task_id)

    async def delete_task(self, task_id: str) -> None:
        if not await self.store.delete_document(TASKS_COLLECTION, task_id):
            raise NotFoundError("task", task_id)
        logger.info(f"Task deleted: {task_id}")

    async def update_task_points(self, task_id: str, points: int) -> Task:
        written = await self.store.update_fields(
            TASKS_COLLECTION, task_id, {"points": points, "updated_at": SERVER_TIMESTAMP}
        )
        if not written:
            raise NotFoundError("task", task_id)
        return await self.get_task(task_id)

    async def reorder_tasks(self, items: list[TaskReorderItem]) -> int:
        """Réaffecte les numéros de jour en un batch atomique."""
        operations = [
            BatchOperation(
                kind="update",
                collection=TASKS_COLLECTION,
                doc_id=item.id,
                data={"day_number": item.day_number, "updated_at": SERVER_TIMESTAMP},
            )
            for item in items
        ]
        await self.store.batch_write(operations)
        return len(operations)

    async def clear_all_tasks(self) -> int:
        """Supprime toutes les tâches (batchs de 10). Retourne le nombre supprimé."""
        docs = await self.store.query(TASKS_COLLECTION)
        deleted = 0
        for i in range(0, len(docs), BATCH_SIZE):
            chunk = docs[i:i + BATCH_SIZE]
            await self.store.batch_write(
                [BatchOperation(kind="delete", collection=TASKS_COLLECTION, doc_id=doc["_id"]) for doc in chunk]
            )
            deleted += len(chunk)
        logger.warning(f"All tasks cleared: {deleted}")
        return deleted

    async def bulk_import_tasks(
        self,
        tasks: list[TaskCreate],
        skip_existing: bool = False,
        replace_existing: bool = False,
    ) -> BulkImportResult:
        """Importe une liste de tâches, une par jour.

        Description:
            Pour chaque tâche, si une tâche existe déjà pour ce `day_number` :
            - `skip_existing` : ignorée (compteur `skipped`)
            - `replace_existing` : l'existante est supprimée puis la nouvelle créée
            - sinon : échec pour cette tâche (message dans `errors`), l'import continue

        Returns:
            BulkImportResult: Compteurs `success`, `failed`, `skipped` et messages d'erreur.
        """
        result = BulkImportResult()
        for data in tasks:
            try:
                existing = await self.store.query(TASKS_COLLECTION, {"day_number": data.day_number})
                if existing:
                    current_title = existing[0].get("title", "")
                    if skip_existing:
                        result.skipped += 1
                        logger.info(f"Import: skipped day {data.day_number} (existing: {current_title!r})")
                        continue
                    if replace_existing:
                        await self.store.delete_document(TASKS_COLLECTION, existing[0]["_id"])
                        logger.info(f"Import: replacing day {data.day_number}: {current_title!r} -> {data.title!r}")
                    else:
                        raise ValueError(
                            f"Task for day {data.day_number} already exists: {current_title!r}. "
                            f"Cannot import {data.title!r}. Use skip or replace option to handle duplicates."
                        )
                await self.create_or_update_task(data)
                result.success += 1
            except Exception as e:
                result.failed += 1
                message = f"Failed to import task {data.title!r} (Day {data.day_number}): {e}"
                result.errors.append(message)
                logger.error(message)

        logger.info(
            f"Bulk import completed: {result.success} successful, {result.failed} failed, {result.skipped} skipped"
        )
        return result

    async def generate_tasks(self, total_days: int, replace_existing: bool = True) -> BulkImportResult:
        """Importe les tâches générées pour un challenge de `total_days` jours."""
        return await self.bulk_import_tasks(
            generate_tasks_for_challenge(total_days),
            skip_existing=not replace_existing,
            replace_existing=replace_existing,
        )
