# backend/focus_challenge/api/routes/base.py
# Routes de base (ping, version de l'API).

from fastapi import APIRouter

from focus_challenge.core.settings import get_settings

router = APIRouter()


@router.get(
    "/ping",
    tags=["Health"],
    summary="Vérification de santé de l'API",
    description="Retourne un message 'pong' permettant de tester que l'API répond.",
)
async def ping():
    """Health-check API.

    Description:
        Route basique permettant de vérifier la disponibilité de l'API.

    Returns:
        dict: Statut et message de réponse.
    """
    return {"status": "ok", "message": "pong"}


@router.get("/version", tags=["Health"], summary="Version de l'API")
async def version():
    settings = get_settings()
    return {"name": settings.app_name, "version": settings.api_version, "environment": settings.environment}
