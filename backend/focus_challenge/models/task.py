# backend/focus_challenge/models/task.py
# Modèles des tâches quotidiennes (document `tasks/<id>`) et payloads d'écriture.

from __future__ import annotations

import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, Field

from focus_challenge.core.bson_utils import MongoBaseModel, new_object_id

TASKS_COLLECTION = "tasks"

TaskCategory = Literal["trial", "worship", "social", "knowledge", "identity", "final"]
TaskDifficulty = Literal["easy", "medium", "hard"]


class TaskBase(BaseModel):
    day_number: int = Field(..., ge=0)
    title: str
    description: str = ""
    points: int = Field(0, ge=0)
    category: TaskCategory = "worship"
    difficulty: TaskDifficulty = "easy"
    estimated_time: str = ""
    tips: list[str] = Field(default_factory=list)


class TaskCreate(TaskBase):
    pass


class TaskUpdate(TaskBase):
    pass


class Task(MongoBaseModel, TaskBase):
    """Tâche d'un jour du challenge.

    Description:
        `is_active` est un cache (tâches du jour courant) ; la règle de déblocage
        fait autorité : `day_number <= current_day` pendant un challenge actif.
    """

    id: str = Field(default_factory=new_object_id, alias="_id")
    is_active: bool = False
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class TaskPointsUpdate(BaseModel):
    points: int = Field(..., ge=0)


class TaskReorderItem(BaseModel):
    id: str
    day_number: int = Field(..., ge=0)


class BulkImportRequest(BaseModel):
    tasks: list[TaskCreate]
    skip_existing: bool = False
    replace_existing: bool = False


class BulkImportResult(BaseModel):
    success: int = 0
    failed: int = 0
    skipped: int = 0
    errors: list[str] = Field(default_factory=list)
