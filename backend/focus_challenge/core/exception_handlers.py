# backend/focus_challenge/core/exception_handlers.py
# Handlers globaux : exceptions métier, HTTP, validation et non capturées vers l'enveloppe ErrorResponse.

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from focus_challenge.api.dto.response_format import ErrorResponse
from focus_challenge.core.exceptions import ChallengeError

logger = logging.getLogger(__name__)


def _error_response(status_code: int, code: str, message: Any, details: Optional[Any] = None) -> JSONResponse:
    envelope = ErrorResponse.from_detail({"code": code, "message": message, "details": details})
    return JSONResponse(status_code=status_code, content=envelope.model_dump())


def _describe_validation_errors(exc: RequestValidationError) -> list[dict[str, str]]:
    return [
        {
            "field": ".".join(str(part) for part in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]


def register_exception_handlers(app: FastAPI):
    """Branche les handlers d'erreurs sur l'application.

    Description:
        Toute erreur sort sous la forme `{"success": false, "error": {code, message, details}}`.
        Les `ChallengeError` gardent leur code et leur statut (409, 404, 403, 422).
    """

    @app.exception_handler(ChallengeError)
    async def on_challenge_error(request: Request, exc: ChallengeError):
        logger.info(f"{request.method} {request.url.path} -> {exc.code}: {exc.message}")
        return _error_response(exc.status_code, exc.code, exc.message, exc.details)

    @app.exception_handler(StarletteHTTPException)
    async def on_http_error(request: Request, exc: StarletteHTTPException):
        return _error_response(exc.status_code, f"HTTP_{exc.status_code}", exc.detail)

    @app.exception_handler(RequestValidationError)
    async def on_validation_error(request: Request, exc: RequestValidationError):
        return _error_response(422, "VALIDATION_ERROR", "Validation failed", _describe_validation_errors(exc))

    @app.exception_handler(Exception)
    async def on_unhandled_error(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return _error_response(500, "INTERNAL_ERROR", "An unexpected error occurred")
