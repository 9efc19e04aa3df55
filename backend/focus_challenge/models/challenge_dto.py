# backend/focus_challenge/models/challenge_dto.py
# Payloads d'entrée/sortie des routes d'administration du challenge.

import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class StartChallengeIn(BaseModel):
    day_count: Optional[int] = Field(
        default=None, ge=1, description="Nombre de jours à planifier (jour 0 inclus)."
    )


class ObservedDayIn(BaseModel):
    observed_day: int = Field(..., ge=0, description="Jour courant vu par l'appelant (compare-and-swap).")


class SetCurrentDayIn(ObservedDayIn):
    target_day: int = Field(..., ge=0)


class ScheduleIn(BaseModel):
    """Planification d'un démarrage futur.

    Description:
        `total_days` est le nombre de jours de challenge hors jour d'essai ; le
        planning contient `total_days + 1` entrées (jours 0..total_days). On peut
        aussi fournir `scheduled_end` à la place de `total_days` (durée déduite).
    """

    scheduled_start: dt.datetime
    scheduled_end: Optional[dt.datetime] = None
    total_days: Optional[int] = Field(default=None, ge=1)
    trial_enabled: bool = True
    day_duration: int = Field(24, gt=0)

    @model_validator(mode="after")
    def _need_length(self):
        if self.total_days is None and self.scheduled_end is None:
            raise ValueError("total_days or scheduled_end is required")
        return self


class CheckResult(BaseModel):
    triggered: bool


class CurrentDayOut(BaseModel):
    current_day: int
    computed_day: int
    max_day: int
    status: str
