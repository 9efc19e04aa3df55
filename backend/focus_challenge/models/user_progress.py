# backend/focus_challenge/models/user_progress.py
# Progression d'un participant (document `users/<uid>`) et entrée de classement.

from __future__ import annotations

import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, Field

from focus_challenge.core.bson_utils import MongoBaseModel

USERS_COLLECTION = "users"

UserRole = Literal["admin", "participant"]


class UserProgress(MongoBaseModel):
    uid: str = Field(..., alias="_id")
    name: str = ""
    email: str = ""
    role: UserRole = "participant"
    progress: dict[str, bool] = Field(default_factory=dict)   # task_id -> terminé
    points: dict[str, int] = Field(default_factory=dict)      # task_id -> points acquis
    total_points: int = 0
    rank: int = 0
    joined_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    @property
    def completed_task_ids(self) -> list[str]:
        return [task_id for task_id, done in self.progress.items() if done]


class UserCreate(BaseModel):
    name: str = ""
    email: str = ""


class ProgressToggle(BaseModel):
    task_id: str
    completed: bool


class LeaderboardEntry(BaseModel):
    user_id: str
    name: str
    email: str
    total_points: int
    completed_tasks: int
    rank: int
    last_updated: Optional[dt.datetime] = None
