# backend/focus_challenge/api/deps.py
# Dépendances FastAPI : store, horloge et services (surchargées dans les tests via dependency_overrides).

from typing import Annotated, Callable, Optional

from fastapi import Depends

from focus_challenge.core.logging_config import DataLogger, get_loggers
from focus_challenge.core.utils import utcnow
from focus_challenge.services.challenge.challenge_service import ChallengeService
from focus_challenge.services.challenge.repository import ChallengeSettingsRepository
from focus_challenge.services.leaderboard_service import LeaderboardService
from focus_challenge.services.progress_service import ProgressService
from focus_challenge.services.tasks_service import TasksService
from focus_challenge.store.base import DocumentStore
from focus_challenge.store.factory import get_store


def get_document_store() -> DocumentStore:
    return get_store()


def get_clock() -> Callable:
    return utcnow


def get_data_logger() -> Optional[DataLogger]:
    return get_loggers()[2]


StoreDep = Annotated[DocumentStore, Depends(get_document_store)]


def get_challenge_service(
    store: StoreDep,
    clock: Annotated[Callable, Depends(get_clock)],
    data_logger: Annotated[Optional[DataLogger], Depends(get_data_logger)],
) -> ChallengeService:
    return ChallengeService(store, clock=clock, data_logger=data_logger)


def get_tasks_service(store: StoreDep) -> TasksService:
    return TasksService(store)


def get_progress_service(store: StoreDep) -> ProgressService:
    return ProgressService(store, ChallengeSettingsRepository(store), TasksService(store))


def get_leaderboard_service(store: StoreDep) -> LeaderboardService:
    return LeaderboardService(store)


ChallengeServiceDep = Annotated[ChallengeService, Depends(get_challenge_service)]
TasksServiceDep = Annotated[TasksService, Depends(get_tasks_service)]
ProgressServiceDep = Annotated[ProgressService, Depends(get_progress_service)]
LeaderboardServiceDep = Annotated[LeaderboardService, Depends(get_leaderboard_service)]
