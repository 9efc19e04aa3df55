# backend/focus_challenge/api/routes/calendar.py
# Route d'affichage calendaire : date hégirienne approximative, date IST et prochain Maghrib.

from __future__ import annotations

from typing import Annotated, Callable

from fastapi import APIRouter, Depends

from focus_challenge.api.deps import get_clock
from focus_challenge.services.challenge.ist_calendar import IST, ist_date_string
from focus_challenge.services.islamic_calendar import today_summary

router = APIRouter(prefix="/calendar", tags=["calendar"])


@router.get(
    "/today",
    summary="Date du jour (hégirienne / IST)",
    description=(
        "Approximation simple : année lunaire de 354,37 jours, Maghrib fixé à 18:00 (IST).\n\n"
        "Les tâches sont suivies de Maghrib à Maghrib."
    ),
)
async def today(clock: Annotated[Callable, Depends(get_clock)]):
    now = clock()
    summary = today_summary(now, IST)
    return {**summary, "ist_date": ist_date_string(now)}
