# backend/focus_challenge/core/exceptions.py
# Exceptions métier du challenge (code + message + détails), traduites en réponses HTTP par exception_handlers.

from typing import Any, Dict, Optional


class ChallengeError(Exception):
    """Exception de base du domaine challenge.

    Description:
        Porte un `code` stable (exposé dans l'enveloppe d'erreur), un message lisible
        et des détails optionnels. `status_code` est utilisé par le handler FastAPI.
    """

    status_code: int = 400

    def __init__(
        self,
        message: str,
        code: str = "CHALLENGE_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convertit l'exception en dict pour les réponses API."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ChallengeStateError(ChallengeError):
    """Transition refusée : la précondition d'état n'est pas remplie (ex. pause d'un challenge inactif)."""

    status_code = 409

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="CHALLENGE_STATE_ERROR", details=details)


class StaleCurrentDayError(ChallengeError):
    """Le `current_day` stocké ne correspond plus au jour observé par l'appelant."""

    status_code = 409

    def __init__(self, observed_day: int, stored_day: Optional[int] = None):
        msg = f"Current day changed since it was observed (observed {observed_day})"
        details: Dict[str, Any] = {"observed_day": observed_day}
        if stored_day is not None:
            details["stored_day"] = stored_day
        super().__init__(message=msg, code="STALE_CURRENT_DAY", details=details)


class TaskLockedError(ChallengeError):
    """Tentative de modifier la progression d'une tâche non débloquée (ou challenge en pause)."""

    status_code = 409

    def __init__(self, task_id: str, message: Optional[str] = None):
        super().__init__(
            message=message or f"Task is locked: {task_id}",
            code="TASK_LOCKED",
            details={"task_id": task_id},
        )


class NotFoundError(ChallengeError):
    """Document introuvable (tâche, participant...)."""

    status_code = 404

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            message=f"{resource} not found: {resource_id}",
            code=f"{resource.upper()}_NOT_FOUND",
            details={f"{resource}_id": resource_id},
        )


class ForbiddenOperationError(ChallengeError):
    """Opération interdite sur cette ressource (ex. suppression d'un admin)."""

    status_code = 403

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="FORBIDDEN_OPERATION", details=details)
