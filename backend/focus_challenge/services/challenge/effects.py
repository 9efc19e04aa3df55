# backend/focus_challenge/services/challenge/effects.py
# Commandes d'activation/désactivation des tâches émises par les transitions, et leur exécution en un batch atomique.

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence, Union

from focus_challenge.models.task import TASKS_COLLECTION
from focus_challenge.store.base import SERVER_TIMESTAMP, BatchOperation, DocumentStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActivateTasksForDay:
    day: int


@dataclass(frozen=True)
class DeactivateTasksForDay:
    day: int


@dataclass(frozen=True)
class DeactivateAllTasks:
    pass


TaskCommand = Union[ActivateTasksForDay, DeactivateTasksForDay, DeactivateAllTasks]


class TaskEffects:
    """Exécuteur des commandes de tâches.

    Description:
        Une transition produit une liste de commandes ; elles sont traduites en un
        seul batch atomique : désactivations d'abord, activations ensuite (une tâche
        à la fois désactivée et activée finit active). Seules les tâches dont le
        drapeau change sont écrites.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    async def _target_states(self, commands: Sequence[TaskCommand]) -> dict[str, bool]:
        deactivate: dict[str, bool] = {}
        activate: dict[str, bool] = {}
        current: dict[str, bool] = {}

        for command in commands:
            if isinstance(command, DeactivateAllTasks):
                docs = await self.store.query(TASKS_COLLECTION, {"is_active": True})
                target = deactivate
            elif isinstance(command, DeactivateTasksForDay):
                docs = await self.store.query(TASKS_COLLECTION, {"day_number": command.day})
                target = deactivate
            else:
                docs = await self.store.query(TASKS_COLLECTION, {"day_number": command.day})
                target = activate
            for doc in docs:
                current[doc["_id"]] = bool(doc.get("is_active", False))
                target[doc["_id"]] = target is activate

        wanted = {**deactivate, **activate}
        return {task_id: state for task_id, state in wanted.items() if current[task_id] != state}

    async def execute(self, commands: Sequence[TaskCommand]) -> int:
        """Exécute les commandes en un batch.

        Args:
            commands (Sequence[TaskCommand]): Commandes émises par une transition.

        Returns:
            int: Nombre de tâches modifiées.

        Raises:
            Exception: Toute erreur du store est loguée puis relancée (pas de rollback
                des réglages : la règle de déblocage dérive de `current_day`).
        """
        if not commands:
            return 0
        try:
            changes = await self._target_states(commands)
            operations = [
                BatchOperation(
                    kind="update",
                    collection=TASKS_COLLECTION,
                    doc_id=task_id,
                    data={"is_active": state, "updated_at": SERVER_TIMESTAMP},
                )
                for task_id, state in sorted(changes.items(), key=lambda item: item[1])
            ]
            if operations:
                await self.store.batch_write(operations)
        except Exception:
            logger.exception(f"Task activation batch failed for {list(commands)}")
            raise
        logger.info(f"Task activation batch applied: {len(operations)} task(s) for {list(commands)}")
        return len(operations)
