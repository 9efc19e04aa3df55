# backend/focus_challenge/services/challenge/state_machine.py
# Transitions pures du challenge (start/stop/pause/resume/avance/recul/planification) : (état, now, ...) -> Transition.

"""
Machine d'états du challenge.

États : NotStarted -> Active -> {Paused <-> Active} -> Stopped.
Chaque transition est une fonction pure : elle reçoit les réglages courants et
l'instant `now`, et retourne une `Transition` (nouveaux réglages, commandes de
tâches, drapeau `changed`, valeurs attendues pour l'écriture conditionnelle).
Aucune lecture d'horloge ni I/O ici ; la persistance est faite par ChallengeService.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, Optional

from focus_challenge.core.exceptions import ChallengeStateError, StaleCurrentDayError
from focus_challenge.models.challenge_settings import ChallengeDay, ChallengeSettings
from focus_challenge.services.challenge.effects import (
    ActivateTasksForDay,
    DeactivateAllTasks,
    DeactivateTasksForDay,
    TaskCommand,
)
from focus_challenge.services.challenge.schedule import (
    compute_current_day,
    generate_challenge_days,
    regenerate_from_day,
    schedule_end_date,
)


@dataclass(frozen=True)
class Transition:
    settings: ChallengeSettings
    commands: tuple[TaskCommand, ...] = ()
    changed: bool = True
    # Valeurs stockées attendues (compare-and-swap) ; None = écriture inconditionnelle
    expect: Optional[dict[str, Any]] = field(default=None)


def unchanged(settings: ChallengeSettings) -> Transition:
    return Transition(settings=settings, commands=(), changed=False)


def _activate(settings: ChallengeSettings, day: int) -> tuple[TaskCommand, ...]:
    # Jour 0 jamais activé sans période d'essai
    if day == 0 and not settings.trial_enabled:
        return ()
    return (ActivateTasksForDay(day),)


def _flip_active_day(
    days: list[ChallengeDay],
    active_day: Optional[int],
    now: dt.datetime,
    completed_day: Optional[int] = None,
) -> list[ChallengeDay]:
    """Marque `active_day` comme seul jour actif (et `completed_day` comme terminé)."""
    result = []
    for day in days:
        update: dict[str, Any] = {"is_active": day.day_number == active_day}
        if day.day_number == active_day and not day.is_active:
            update["activated_at"] = now
        if completed_day is not None and day.day_number == completed_day:
            update["is_completed"] = True
        result.append(day.model_copy(update=update))
    return result


def _require_running(settings: ChallengeSettings, action: str) -> None:
    if not settings.is_active:
        raise ChallengeStateError(f"Cannot {action}: challenge is not active", {"status": settings.status})
    if settings.is_paused:
        raise ChallengeStateError(f"Cannot {action}: challenge is paused", {"status": settings.status})


def _require_observed(settings: ChallengeSettings, observed_day: int) -> dict[str, Any]:
    if settings.current_day != observed_day:
        raise StaleCurrentDayError(observed_day, settings.current_day)
    return {"current_day": observed_day, "is_active": True, "is_paused": False}


# --------------------------------------------------------------------------- cycle de vie

def start(
    settings: ChallengeSettings,
    now: dt.datetime,
    day_count: Optional[int] = None,
    default_day_count: int = 15,
) -> Transition:
    """Démarre (ou redémarre) le challenge à `now`.

    Description:
        Aucune précondition. Planning régénéré depuis `now` ; nombre de jours :
        argument, sinon longueur du planning existant, sinon `default_day_count`.
        Commandes : tout désactiver, puis activer le jour 0 (si essai activé).
    """
    count = day_count or len(settings.challenge_days) or default_day_count
    days = generate_challenge_days(now, settings.day_duration, count)
    days[0] = days[0].model_copy(update={"activated_at": now})

    next_settings = settings.model_copy(
        update={
            "is_active": True,
            "is_paused": False,
            "start_date": now,
            "end_date": schedule_end_date(now, settings.day_duration, count),
            "current_day": 0,
            "paused_at": None,
            "resumed_at": None,
            "challenge_days": days,
        }
    )
    return Transition(
        settings=next_settings,
        commands=(DeactivateAllTasks(),) + _activate(next_settings, 0),
    )


def stop(settings: ChallengeSettings, now: dt.datetime) -> Transition:
    """Arrête le challenge.

    Description:
        Idempotent : sur un challenge déjà arrêté (inactif et non en pause), aucune
        écriture. Efface la planification pour qu'une date passée ne relance pas le
        challenge à la réconciliation suivante.
    """
    if not settings.is_active and not settings.is_paused:
        return unchanged(settings)

    next_settings = settings.model_copy(
        update={
            "is_active": False,
            "is_paused": False,
            "current_day": 0,
            "paused_at": None,
            "resumed_at": None,
            "end_date": now,
            "scheduled_start_date": None,
            "scheduled_end_date": None,
            "challenge_days": _flip_active_day(settings.challenge_days, None, now),
        }
    )
    return Transition(settings=next_settings, commands=(DeactivateAllTasks(),))


def pause(settings: ChallengeSettings, now: dt.datetime) -> Transition:
    """Met en pause (précondition : actif et non en pause). Toutes les tâches sont masquées."""
    _require_running(settings, "pause")
    next_settings = settings.model_copy(update={"is_paused": True, "paused_at": now})
    return Transition(settings=next_settings, commands=(DeactivateAllTasks(),))


def resume(settings: ChallengeSettings, now: dt.datetime) -> Transition:
    """Reprend après une pause.

    Description:
        Le jour interrompu (calculé à `paused_at`) redémarre à `now` : ses dates et
        celles des jours suivants sont ré-ancrées, les jours antérieurs gardent leurs
        dates (historique). Commande : activer les tâches du jour courant.

    Raises:
        ChallengeStateError: Si le challenge n'est pas en pause.
    """
    if not settings.is_paused or settings.paused_at is None:
        raise ChallengeStateError("Challenge is not currently paused", {"status": settings.status})

    if settings.start_date is not None:
        paused_day = compute_current_day(
            settings.start_date, settings.day_duration, settings.paused_at, settings.max_day
        )
    else:
        paused_day = settings.current_day
    current_day = max(paused_day, 0)

    days = regenerate_from_day(settings.challenge_days, paused_day, now, settings.day_duration)
    next_settings = settings.model_copy(
        update={
            "is_paused": False,
            "resumed_at": now,
            "current_day": current_day,
            "challenge_days": _flip_active_day(days, current_day, now),
        }
    )
    return Transition(settings=next_settings, commands=_activate(next_settings, current_day))


# --------------------------------------------------------------------------- jours

def advance_to_next_day(settings: ChallengeSettings, observed_day: int, now: dt.datetime) -> Transition:
    """Passe au jour suivant, ou arrête le challenge si le dernier jour est dépassé.

    Raises:
        ChallengeStateError: Si le challenge n'est pas actif ou est en pause.
        StaleCurrentDayError: Si `observed_day` ne correspond plus au jour stocké.
    """
    _require_running(settings, "advance")
    expect = _require_observed(settings, observed_day)

    next_day = observed_day + 1
    if next_day > settings.max_day:
        stopped = stop(settings, now)
        return Transition(settings=stopped.settings, commands=stopped.commands, expect=expect)

    next_settings = settings.model_copy(
        update={
            "current_day": next_day,
            "challenge_days": _flip_active_day(
                settings.challenge_days, next_day, now, completed_day=observed_day
            ),
        }
    )
    return Transition(
        settings=next_settings,
        commands=(DeactivateTasksForDay(observed_day),) + _activate(next_settings, next_day),
        expect=expect,
    )


def set_current_day(
    settings: ChallengeSettings,
    observed_day: int,
    target_day: int,
    now: dt.datetime,
) -> Transition:
    """Saut direct vers `target_day` (borné à `[0, max_day]`), avec compare-and-swap."""
    _require_running(settings, "change day")
    expect = _require_observed(settings, observed_day)

    target = min(max(target_day, 0), settings.max_day)
    if target == observed_day:
        return unchanged(settings)

    next_settings = settings.model_copy(
        update={
            "current_day": target,
            "challenge_days": _flip_active_day(settings.challenge_days, target, now),
        }
    )
    return Transition(
        settings=next_settings,
        commands=(DeactivateTasksForDay(observed_day),) + _activate(next_settings, target),
        expect=expect,
    )


def go_to_previous_day(settings: ChallengeSettings, observed_day: int, now: dt.datetime) -> Transition:
    """Revient au jour précédent (no-op au jour 0)."""
    return set_current_day(settings, observed_day, observed_day - 1, now)


# --------------------------------------------------------------------------- planification

def check_and_start(
    settings: ChallengeSettings,
    now: dt.datetime,
    default_day_count: int = 15,
) -> Transition:
    """Démarre si la date de début planifiée est atteinte (sûr à appeler chaque minute)."""
    if settings.is_active or settings.scheduled_start_date is None:
        return unchanged(settings)
    if now < settings.scheduled_start_date:
        return unchanged(settings)
    return start(settings, now, default_day_count=default_day_count)


def check_and_end(settings: ChallengeSettings, now: dt.datetime) -> Transition:
    """Arrête si la date de fin planifiée est atteinte."""
    if not settings.is_active or settings.scheduled_end_date is None:
        return unchanged(settings)
    if now < settings.scheduled_end_date:
        return unchanged(settings)
    return stop(settings, now)


def set_schedule(
    settings: ChallengeSettings,
    now: dt.datetime,
    scheduled_start: dt.datetime,
    total_days: int,
    trial_enabled: bool = True,
    day_duration: int = 24,
) -> Transition:
    """Planifie un démarrage futur.

    Description:
        Génère `total_days + 1` jours (0..total_days) ; le jour 0 est conservé même
        sans période d'essai pour garder une numérotation contiguë.

    Raises:
        ChallengeStateError: Si le challenge est actif ou si le début n'est pas dans le futur.
    """
    if settings.is_active:
        raise ChallengeStateError("Cannot schedule: challenge is already active", {"status": settings.status})
    if scheduled_start <= now:
        raise ChallengeStateError(
            "Scheduled start must be in the future",
            {"scheduled_start": scheduled_start.isoformat(), "now": now.isoformat()},
        )

    day_count = total_days + 1
    days = generate_challenge_days(scheduled_start, day_duration, day_count)
    next_settings = settings.model_copy(
        update={
            "scheduled_start_date": scheduled_start,
            "scheduled_end_date": schedule_end_date(scheduled_start, day_duration, day_count),
            "trial_enabled": trial_enabled,
            "day_duration": day_duration,
            "current_day": 0,
            "challenge_days": days,
        }
    )
    return Transition(settings=next_settings)
