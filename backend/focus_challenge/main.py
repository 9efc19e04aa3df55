# backend/focus_challenge/main.py

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from focus_challenge.api.routes import routers
from focus_challenge.core.exception_handlers import register_exception_handlers
from focus_challenge.core.logging_config import get_loggers
from focus_challenge.core.settings import get_settings
from focus_challenge.services.challenge.challenge_service import ChallengeService
from focus_challenge.services.challenge.marker_store import JsonFileMarkerStore
from focus_challenge.services.challenge.reconciliation import ReconciliationLoop
from focus_challenge.store.factory import get_store, reset_store

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- startup ---
    logger, _, data_logger = get_loggers()
    store = get_store()

    if settings.store_backend == "mongo":
        from focus_challenge.db.seed_indexes import ensure_indexes

        await ensure_indexes()  # toujours, idempotent

    if settings.seed_on_startup:
        from focus_challenge.db.seed_data import seed_defaults

        await seed_defaults(store)

    app.state.reconciliation = None
    if settings.reconcile_enabled:
        loop = ReconciliationLoop(
            ChallengeService(store, data_logger=data_logger),
            JsonFileMarkerStore(settings.marker_store_path),
            challenge_id=settings.challenge_id,
            interval=settings.reconcile_interval_s,
        )
        loop.start()
        app.state.reconciliation = loop
    logger.info(f"{settings.app_name} started (store={settings.store_backend})")

    yield  # l'app tourne ici

    # --- shutdown ---
    if app.state.reconciliation is not None:
        await app.state.reconciliation.stop()
    await store.close()
    reset_store()
    if settings.store_backend == "mongo":
        from focus_challenge.db.mongodb import close_client

        close_client()
    logger.info(f"{settings.app_name} stopped")


app = FastAPI(title="Focus Challenge API", version=settings.api_version, lifespan=lifespan)

# Autorise le frontend à se connecter
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

for r in routers:
    app.include_router(r)
