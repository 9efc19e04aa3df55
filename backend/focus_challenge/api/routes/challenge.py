# backend/focus_challenge/api/routes/challenge.py
# Routes d'administration du challenge : réglages, cycle de vie, changement de jour, planification.

from __future__ import annotations

from fastapi import APIRouter, Body

from focus_challenge.api.deps import ChallengeServiceDep
from focus_challenge.models.challenge_dto import (
    CheckResult,
    CurrentDayOut,
    ObservedDayIn,
    ScheduleIn,
    SetCurrentDayIn,
    StartChallengeIn,
)
from focus_challenge.models.challenge_settings import ChallengeSettings

router = APIRouter(prefix="/challenge", tags=["challenge"])


@router.get(
    "/settings",
    response_model=ChallengeSettings,
    summary="Réglages du challenge",
    description="Retourne le document de réglages (créé avec les valeurs par défaut s'il n'existe pas).",
)
async def get_settings(service: ChallengeServiceDep):
    return await service.get_settings()


@router.post(
    "/start",
    response_model=ChallengeSettings,
    summary="Démarrer le challenge",
    description=(
        "Démarre (ou redémarre) le challenge maintenant.\n\n"
        "- Planning régénéré à partir de l'instant courant\n"
        "- Jour courant remis à 0, tâches du jour 0 activées si l'essai est activé"
    ),
)
async def start(service: ChallengeServiceDep, payload: StartChallengeIn | None = Body(default=None)):
    """Démarrer le challenge.

    Args:
        payload (StartChallengeIn | None): Nombre de jours optionnel (jour 0 inclus).

    Returns:
        ChallengeSettings: Réglages après démarrage.
    """
    return await service.start_challenge(payload.day_count if payload else None)


@router.post("/stop", response_model=ChallengeSettings, summary="Arrêter le challenge (idempotent)")
async def stop(service: ChallengeServiceDep):
    return await service.stop_challenge()


@router.post(
    "/pause",
    response_model=ChallengeSettings,
    summary="Mettre en pause",
    description="Précondition : challenge actif et non en pause (409 sinon). Toutes les tâches sont masquées.",
)
async def pause(service: ChallengeServiceDep):
    return await service.pause_challenge()


@router.post(
    "/resume",
    response_model=ChallengeSettings,
    summary="Reprendre après une pause",
    description="Le jour interrompu redémarre maintenant ; les jours suivants sont recalculés (409 si pas en pause).",
)
async def resume(service: ChallengeServiceDep):
    return await service.resume_challenge()


@router.post(
    "/advance",
    response_model=ChallengeSettings,
    summary="Passer au jour suivant",
    description=(
        "Compare-and-swap : `observed_day` doit égaler le jour stocké (409 `STALE_CURRENT_DAY` sinon).\n\n"
        "Au-delà du dernier jour, le challenge est arrêté."
    ),
)
async def advance(payload: ObservedDayIn, service: ChallengeServiceDep):
    return await service.advance_to_next_day(payload.observed_day)


@router.post(
    "/previous",
    response_model=ChallengeSettings,
    summary="Revenir au jour précédent",
    description="Compare-and-swap sur `observed_day` ; sans effet au jour 0.",
)
async def previous(payload: ObservedDayIn, service: ChallengeServiceDep):
    return await service.go_to_previous_day(payload.observed_day)


@router.post("/current-day", response_model=ChallengeSettings, summary="Fixer directement le jour courant")
async def set_current_day(payload: SetCurrentDayIn, service: ChallengeServiceDep):
    return await service.set_current_day(payload.target_day, payload.observed_day)


@router.get(
    "/current-day",
    response_model=CurrentDayOut,
    summary="Jour courant",
    description="Jour stocké et jour déduit du temps écoulé (figé pendant une pause).",
)
async def current_day(service: ChallengeServiceDep):
    return await service.get_current_day()


@router.post(
    "/schedule",
    response_model=ChallengeSettings,
    summary="Planifier un démarrage futur",
    description=(
        "Génère `total_days + 1` jours (0..total_days) à partir de `scheduled_start`.\n\n"
        "- Refusé si le challenge est actif ou si le début n'est pas dans le futur (409)\n"
        "- `scheduled_end` peut remplacer `total_days` (durée déduite)"
    ),
)
async def schedule(payload: ScheduleIn, service: ChallengeServiceDep):
    return await service.set_schedule(
        scheduled_start=payload.scheduled_start,
        total_days=payload.total_days,
        scheduled_end=payload.scheduled_end,
        trial_enabled=payload.trial_enabled,
        day_duration=payload.day_duration,
    )


@router.post("/check-start", response_model=CheckResult, summary="Démarrer si la date planifiée est atteinte")
async def check_start(service: ChallengeServiceDep):
    return CheckResult(triggered=await service.check_and_start_challenge())


@router.post("/check-end", response_model=CheckResult, summary="Arrêter si la date de fin planifiée est atteinte")
async def check_end(service: ChallengeServiceDep):
    return CheckResult(triggered=await service.check_and_end_challenge())
