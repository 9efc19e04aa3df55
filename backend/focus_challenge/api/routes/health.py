from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from focus_challenge.api.deps import StoreDep
from focus_challenge.core.health_checks import check_reconciliation, check_store
from focus_challenge.core.settings import get_settings
from focus_challenge.core.utils import utcnow
from focus_challenge.models.base.health import HealthCheck

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthCheck,
    summary="Health check de l'API",
    description="Retourne le statut de l'API et de ses dépendances (store, boucle de réconciliation)",
)
async def health(request: Request, store: StoreDep) -> JSONResponse:
    """
    Health check endpoint standard

    Vérifie :
    - Store (MongoDB ou mémoire)
    - Boucle de réconciliation

    Returns:
        200 si tout OK, 503 si un service est down
    """
    checks = {
        "store": await check_store(store),
        "reconciliation": check_reconciliation(getattr(request.app.state, "reconciliation", None)),
    }

    has_errors = checks["store"] != "ok" or checks["reconciliation"] == "stopped"
    overall_status = "degraded" if has_errors else "ok"

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE if has_errors else status.HTTP_200_OK

    response = HealthCheck(
        status=overall_status,
        timestamp=utcnow(),
        version=get_settings().api_version,
        checks=checks,
    )

    return JSONResponse(status_code=status_code, content=response.model_dump(mode="json"))
