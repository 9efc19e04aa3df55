# backend/focus_challenge/api/routes/__init__.py

from .base import router as base_router
from .calendar import router as calendar_router
from .challenge import router as challenge_router
from .health import router as health_router
from .participants import router as participants_router
from .tasks import router as tasks_router

routers = [
    base_router,
    health_router,
    challenge_router,
    tasks_router,
    participants_router,
    calendar_router,
]
