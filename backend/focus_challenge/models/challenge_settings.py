# backend/focus_challenge/models/challenge_settings.py
# Modèles du document singleton `settings/challenge` : jours planifiés et état du challenge.

from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from focus_challenge.core.bson_utils import MongoBaseModel
from focus_challenge.core.utils import ensure_aware

SETTINGS_COLLECTION = "settings"
SETTINGS_DOC_ID = "challenge"


class ChallengeDay(BaseModel):
    """Jour planifié du challenge.

    Description:
        `tracking_date` vaut toujours `scheduled_date - 24h`. Le tableau des jours
        est réécrit en entier à chaque modification.
    """

    day_number: int = Field(..., ge=0)
    scheduled_date: dt.datetime
    tracking_date: dt.datetime
    is_active: bool = False
    is_completed: bool = False
    activated_at: Optional[dt.datetime] = None

    @field_validator("scheduled_date", "tracking_date", "activated_at")
    @classmethod
    def _aware(cls, v):
        return ensure_aware(v) if v is not None else v


class ChallengeSettings(MongoBaseModel):
    """État persistant du challenge (document unique).

    Description:
        Invariant: `0 <= current_day <= max_day`. En pause, aucun avancement de jour.
        Inactif, `current_day` n'est pas utilisé pour débloquer des tâches.
    """

    is_active: bool = False
    is_paused: bool = False
    start_date: Optional[dt.datetime] = None
    scheduled_start_date: Optional[dt.datetime] = None
    scheduled_end_date: Optional[dt.datetime] = None
    end_date: Optional[dt.datetime] = None
    current_day: int = Field(0, ge=0)
    day_duration: int = Field(24, gt=0, description="Durée d'un jour de challenge, en heures")
    trial_enabled: bool = True
    challenge_days: list[ChallengeDay] = Field(default_factory=list)
    paused_at: Optional[dt.datetime] = None
    resumed_at: Optional[dt.datetime] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    @field_validator(
        "start_date", "scheduled_start_date", "scheduled_end_date", "end_date",
        "paused_at", "resumed_at", "created_at", "updated_at",
    )
    @classmethod
    def _aware(cls, v):
        return ensure_aware(v) if v is not None else v

    @property
    def max_day(self) -> int:
        """Dernier numéro de jour (0 si aucun jour planifié)."""
        return max(len(self.challenge_days) - 1, 0)

    @property
    def status(self) -> str:
        """`not_started` | `active` | `paused` | `stopped` (dérivé des drapeaux)."""
        if self.is_active:
            return "paused" if self.is_paused else "active"
        return "stopped" if self.start_date is not None else "not_started"

    def day(self, day_number: int) -> Optional[ChallengeDay]:
        for day in self.challenge_days:
            if day.day_number == day_number:
                return day
        return None

    def to_document(self) -> dict:
        """Champs persistés (hors `_id` et horodatages serveur)."""
        return self.model_dump(exclude={"created_at", "updated_at"})
