# backend/focus_challenge/api/routes/participants.py
# Routes participants (document, progression, reset, suppression) et classement.

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Body, Path, status

from focus_challenge.api.deps import LeaderboardServiceDep, ProgressServiceDep
from focus_challenge.models.user_progress import LeaderboardEntry, ProgressToggle, UserCreate, UserProgress

router = APIRouter(tags=["participants"])


@router.get("/participants", response_model=list[UserProgress], summary="Lister les participants")
async def list_participants(service: ProgressServiceDep):
    return await service.list_participants()


@router.get("/participants/{uid}", response_model=UserProgress, summary="Progression d'un participant")
async def get_participant(service: ProgressServiceDep, uid: str = Path(...)):
    return await service.get_user_progress(uid)


@router.post(
    "/participants/{uid}",
    response_model=UserProgress,
    summary="Créer le document participant (première connexion)",
    description="Idempotent : un document existant est conservé, seul un rôle manquant est complété.",
)
async def ensure_participant(
    service: ProgressServiceDep,
    uid: str = Path(...),
    payload: UserCreate | None = Body(default=None),
):
    payload = payload or UserCreate()
    return await service.ensure_user_document(uid, name=payload.name, email=payload.email)


@router.post(
    "/participants/{uid}/progress",
    response_model=UserProgress,
    summary="Cocher/décocher une tâche",
    description=(
        "Refusé (409 `TASK_LOCKED`) si le challenge est inactif, en pause, ou si la tâche n'est pas débloquée.\n\n"
        "Le classement est recalculé en tâche de fond."
    ),
)
async def toggle_progress(
    payload: ProgressToggle,
    background_tasks: BackgroundTasks,
    service: ProgressServiceDep,
    leaderboard: LeaderboardServiceDep,
    uid: str = Path(...),
):
    """Mettre à jour la progression d'un participant.

    Description:
        Écrit `progress[task_id]`, `points[task_id]` et `total_points` recalculé,
        puis planifie la mise à jour des rangs (non bloquante).

    Returns:
        UserProgress: Progression mise à jour.
    """
    user = await service.update_user_progress(uid, payload.task_id, payload.completed)
    background_tasks.add_task(leaderboard.update_leaderboard)
    return user


@router.post("/participants/{uid}/reset", response_model=UserProgress, summary="Réinitialiser la progression")
async def reset_participant(
    background_tasks: BackgroundTasks,
    service: ProgressServiceDep,
    leaderboard: LeaderboardServiceDep,
    uid: str = Path(...),
):
    user = await service.reset_participant_progress(uid)
    background_tasks.add_task(leaderboard.update_leaderboard)
    return user


@router.delete(
    "/participants/{uid}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Supprimer un participant",
    description="Les comptes admin ne peuvent pas être supprimés (403).",
)
async def delete_participant(
    background_tasks: BackgroundTasks,
    service: ProgressServiceDep,
    leaderboard: LeaderboardServiceDep,
    uid: str = Path(...),
):
    await service.delete_participant(uid)
    background_tasks.add_task(leaderboard.update_leaderboard)


@router.get("/leaderboard", response_model=list[LeaderboardEntry], summary="Classement des participants")
async def get_leaderboard(leaderboard: LeaderboardServiceDep):
    return await leaderboard.get_leaderboard()


@router.post("/leaderboard/refresh", summary="Recalculer et persister les rangs")
async def refresh_leaderboard(leaderboard: LeaderboardServiceDep):
    return {"updated": await leaderboard.update_leaderboard()}
