import logging

from focus_challenge.store.base import DocumentStore

logger = logging.getLogger(__name__)


async def check_store(store: DocumentStore) -> str:
    """
    Vérifie la disponibilité du store (ping Mongo, toujours ok en mémoire)

    Returns:
        "ok" si joignable, message d'erreur sinon
    """
    try:
        await store.ping()
        return "ok"

    except Exception as e:
        logger.error(f"Store health check failed: {e}")
        return f"error: {str(e)}"


def check_reconciliation(loop) -> str:
    """
    Statut de la boucle de réconciliation

    Returns:
        "running", "disabled" (non démarrée par configuration) ou "stopped"
    """
    if loop is None:
        return "disabled"
    return "running" if loop.running else "stopped"
