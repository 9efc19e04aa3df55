# backend/focus_challenge/services/islamic_calendar.py
# Date hégirienne approximative et prochain Maghrib (18:00 fixe) pour l'affichage "Maghrib à Maghrib".

"""
Approximation volontairement simple du calendrier hégirien : pas de calcul
astronomique, une année lunaire de 354,37 jours et un mois de 29,53 jours
comptés depuis le 16 juillet 622. Le Maghrib est fixé à 18:00 heure locale.
"""

from __future__ import annotations

import datetime as dt
import math
from typing import Optional

HIJRI_EPOCH = dt.datetime(622, 7, 16, tzinfo=dt.timezone.utc)
LUNAR_YEAR_DAYS = 354.37
LUNAR_MONTH_DAYS = 29.53
MAGHRIB_HOUR = 18

HIJRI_MONTHS = [
    "Muharram", "Safar", "Rabi' al-awwal", "Rabi' al-thani",
    "Jumada al-awwal", "Jumada al-thani", "Rajab", "Sha'ban",
    "Ramadan", "Shawwal", "Dhu al-Qi'dah", "Dhu al-Hijjah",
]


def hijri_parts(now: dt.datetime) -> tuple[int, int, int]:
    """(jour, mois 1-12, année) hégiriens approximatifs."""
    days_diff = math.floor((now - HIJRI_EPOCH) / dt.timedelta(days=1))
    year = math.floor(days_diff / LUNAR_YEAR_DAYS) + 1
    day_in_year = days_diff % 354
    month = min(math.floor(day_in_year / LUNAR_MONTH_DAYS) + 1, 12)
    day = math.floor(day_in_year % LUNAR_MONTH_DAYS) + 1
    return day, month, year


def hijri_date(now: dt.datetime) -> str:
    """Date hégirienne lisible, ex. `12 Ramadan 1447 AH`."""
    day, month, year = hijri_parts(now)
    return f"{day} {HIJRI_MONTHS[month - 1]} {year} AH"


def next_maghrib(now: dt.datetime) -> dt.datetime:
    """Prochain Maghrib (18:00 dans le fuseau de `now`), aujourd'hui ou demain."""
    maghrib = now.replace(hour=MAGHRIB_HOUR, minute=0, second=0, microsecond=0)
    if now > maghrib:
        maghrib += dt.timedelta(days=1)
    return maghrib


def time_until(target: dt.datetime, now: dt.datetime) -> str:
    """Durée restante au format `Xh Ym` (ou `Ym` sous une heure)."""
    remaining = target - now
    if remaining <= dt.timedelta(0):
        return "Next Maghrib"
    total_minutes = int(remaining.total_seconds() // 60)
    hours, minutes = divmod(total_minutes, 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def today_summary(now: dt.datetime, tz: Optional[dt.tzinfo] = None) -> dict:
    """Résumé du jour (date hégirienne, grégorienne, prochain Maghrib) dans le fuseau `tz`."""
    local_now = now.astimezone(tz) if tz is not None else now
    maghrib = next_maghrib(local_now)
    return {
        "hijri_date": hijri_date(local_now),
        "gregorian_date": local_now.strftime("%Y-%m-%d"),
        "next_maghrib": maghrib,
        "time_to_maghrib": time_until(maghrib, local_now),
    }
