# backend/focus_challenge/api/routes/tasks.py
# Routes des tâches : listing (toutes / débloquées), CRUD, points, réordonnancement, import et génération.

from __future__ import annotations

from fastapi import APIRouter, Path, Query, status

from focus_challenge.api.deps import ChallengeServiceDep, TasksServiceDep
from focus_challenge.models.task import (
    BulkImportRequest,
    BulkImportResult,
    Task,
    TaskCreate,
    TaskPointsUpdate,
    TaskReorderItem,
    TaskUpdate,
)
from focus_challenge.services.tasks_service import count_available_challenge_tasks

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get(
    "",
    response_model=list[Task],
    summary="Lister toutes les tâches",
    description="Tâches triées par jour. `auto_initialize=true` insère le jeu par défaut si la collection est vide.",
)
async def list_tasks(
    service: TasksServiceDep,
    auto_initialize: bool = Query(False, description="Seed des tâches par défaut si aucune tâche."),
):
    return await service.get_all_tasks(auto_initialize=auto_initialize)


@router.get(
    "/available",
    response_model=list[Task],
    summary="Tâches débloquées",
    description="Tâches visibles des participants : `day_number <= current_day` d'un challenge actif (jour 0 si essai activé).",
)
async def available_tasks(service: TasksServiceDep, challenge: ChallengeServiceDep):
    return await service.get_available_tasks(await challenge.get_settings())


@router.get("/count", summary="Nombre de tâches comptées dans le challenge (hors jour 0)")
async def count_tasks(service: TasksServiceDep, challenge: ChallengeServiceDep):
    settings = await challenge.get_settings()
    return {"count": count_available_challenge_tasks(settings, await service.get_all_tasks())}


@router.post("", response_model=Task, status_code=status.HTTP_201_CREATED, summary="Créer une tâche")
async def create_task(payload: TaskCreate, service: TasksServiceDep):
    return await service.create_or_update_task(payload)


@router.put("/{task_id}", response_model=Task, summary="Mettre à jour une tâche")
async def update_task(
    payload: TaskUpdate,
    service: TasksServiceDep,
    task_id: str = Path(..., description="Identifiant de la tâche."),
):
    return await service.create_or_update_task(payload, task_id=task_id)


@router.patch("/{task_id}/points", response_model=Task, summary="Modifier les points d'une tâche")
async def update_points(payload: TaskPointsUpdate, service: TasksServiceDep, task_id: str = Path(...)):
    return await service.update_task_points(task_id, payload.points)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Supprimer une tâche")
async def delete_task(service: TasksServiceDep, task_id: str = Path(...)):
    await service.delete_task(task_id)


@router.post("/reorder", summary="Réaffecter les numéros de jour (batch atomique)")
async def reorder(payload: list[TaskReorderItem], service: TasksServiceDep):
    return {"updated": await service.reorder_tasks(payload)}


@router.post(
    "/import",
    response_model=BulkImportResult,
    summary="Import en masse",
    description=(
        "Importe une tâche par jour.\n\n"
        "- `skip_existing` : ignore les jours déjà pourvus\n"
        "- `replace_existing` : remplace la tâche existante\n"
        "- sinon le doublon est compté en échec, l'import continue"
    ),
)
async def bulk_import(payload: BulkImportRequest, service: TasksServiceDep):
    return await service.bulk_import_tasks(
        payload.tasks, skip_existing=payload.skip_existing, replace_existing=payload.replace_existing
    )


@router.post("/generate", response_model=BulkImportResult, summary="Générer les tâches d'un challenge de N jours")
async def generate(
    service: TasksServiceDep,
    total_days: int = Query(..., ge=1, le=365),
    replace_existing: bool = Query(True),
):
    return await service.generate_tasks(total_days, replace_existing=replace_existing)


@router.delete("", summary="Supprimer toutes les tâches")
async def clear_tasks(service: TasksServiceDep):
    return {"deleted": await service.clear_all_tasks()}
