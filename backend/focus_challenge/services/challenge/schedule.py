# backend/focus_challenge/services/challenge/schedule.py
# Génération du planning (jours du challenge) et calcul du jour courant. Fonctions pures, sans lecture d'horloge.

from __future__ import annotations

import datetime as dt
import math

from focus_challenge.core.utils import ONE_DAY, ONE_HOUR
from focus_challenge.models.challenge_settings import ChallengeDay


def generate_challenge_days(
    start: dt.datetime,
    day_duration_hours: int,
    day_count: int,
    starting_day: int = 0,
) -> list[ChallengeDay]:
    """Génère `day_count` jours contigus à partir d'un instant de départ.

    Description:
        Jour d'indice `k` (numéro `starting_day + k`) :
        - `scheduled_date = start + k * day_duration_hours`
        - `tracking_date = scheduled_date - 24h` (toujours 24h, quelle que soit la durée d'un jour)
        - seul le premier jour est marqué `is_active`

    Args:
        start (datetime): Instant de début (jour `starting_day`).
        day_duration_hours (int): Durée d'un jour de challenge, en heures.
        day_count (int): Nombre d'entrées à produire.
        starting_day (int): Numéro du premier jour (0 = jour d'essai).

    Returns:
        list[ChallengeDay]: Jours numérotés `starting_day..starting_day + day_count - 1`.
    """
    step = day_duration_hours * ONE_HOUR
    days = []
    for k in range(max(day_count, 0)):
        scheduled = start + k * step
        days.append(
            ChallengeDay(
                day_number=starting_day + k,
                scheduled_date=scheduled,
                tracking_date=scheduled - ONE_DAY,
                is_active=(k == 0),
                is_completed=False,
            )
        )
    return days


def regenerate_from_day(
    days: list[ChallengeDay],
    from_day: int,
    anchor: dt.datetime,
    day_duration_hours: int,
) -> list[ChallengeDay]:
    """Recalcule les dates des jours `>= from_day` en les ancrant sur `anchor`.

    Description:
        Utilisé à la reprise après une pause : le jour interrompu redémarre à
        `anchor`, les suivants s'enchaînent. Les jours antérieurs sont conservés
        tels quels (historique). Les autres champs (`is_active`, `is_completed`...)
        ne sont pas modifiés.

    Returns:
        list[ChallengeDay]: Nouvelle liste (les entrées d'origine ne sont pas mutées).
    """
    step = day_duration_hours * ONE_HOUR
    result = []
    for day in days:
        if day.day_number >= from_day:
            scheduled = anchor + (day.day_number - from_day) * step
            day = day.model_copy(update={"scheduled_date": scheduled, "tracking_date": scheduled - ONE_DAY})
        result.append(day)
    return result


def compute_current_day(
    start: dt.datetime,
    day_duration_hours: int,
    now: dt.datetime,
    max_day: int,
) -> int:
    """Jour courant déduit du temps écoulé.

    Description:
        `floor(heures écoulées / day_duration_hours)`, borné à `[0, max_day]`.
        En pause, l'appelant passe `paused_at` à la place de `now`.
    """
    elapsed_hours = (now - start) / ONE_HOUR
    days_passed = math.floor(elapsed_hours / day_duration_hours)
    return min(max(days_passed, 0), max(max_day, 0))


def challenge_duration_days(start: dt.datetime, end: dt.datetime) -> int:
    """Nombre de jours (arrondi supérieur) entre deux instants, au minimum 1."""
    return max(1, math.ceil((end - start) / ONE_DAY))


def schedule_end_date(start: dt.datetime, day_duration_hours: int, day_count: int) -> dt.datetime:
    """Instant de fin d'un planning de `day_count` jours (fin du dernier jour)."""
    return start + max(day_count, 0) * day_duration_hours * ONE_HOUR
