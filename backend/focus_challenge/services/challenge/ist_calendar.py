# backend/focus_challenge/services/challenge/ist_calendar.py
# Comparaisons calendaires en heure indienne (IST, UTC+5:30) pour la réconciliation quotidienne.

from __future__ import annotations

import datetime as dt
from typing import Optional

from focus_challenge.models.challenge_settings import ChallengeDay

IST = dt.timezone(dt.timedelta(hours=5, minutes=30), name="IST")


def to_ist(instant: dt.datetime) -> dt.datetime:
    """Convertit un instant aware en heure IST."""
    return instant.astimezone(IST)


def ist_date_string(instant: dt.datetime) -> str:
    """Date calendaire IST au format `YYYY-MM-DD`."""
    return to_ist(instant).strftime("%Y-%m-%d")


def find_day_for_ist_date(days: list[ChallengeDay], ist_date: str) -> Optional[ChallengeDay]:
    """Premier jour planifié dont la `scheduled_date` tombe à la date IST donnée."""
    for day in days:
        if ist_date_string(day.scheduled_date) == ist_date:
            return day
    return None


def expected_day_for(days: list[ChallengeDay], ist_date: str, current_day: int, max_day: int) -> int:
    """Jour attendu pour une date IST.

    Description:
        Numéro du jour dont la date planifiée (IST) est `ist_date`, borné à `max_day` ;
        à défaut (date hors planning), le `current_day` stocké est conservé.
    """
    day = find_day_for_ist_date(days, ist_date)
    if day is None:
        return current_day
    return min(day.day_number, max_day)
