# backend/focus_challenge/db/mongodb.py
# Initialise (paresseusement) le client MongoDB à partir des settings et expose des helpers d'accès aux collections.

from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase

from focus_challenge.core.settings import get_settings

_client: Optional[AsyncIOMotorClient] = None


def get_client() -> AsyncIOMotorClient:
    """Retourne le client Motor partagé (créé au premier appel).

    Description:
        Le client est créé avec `tz_aware=True` : les datetimes lus sont en UTC aware,
        comparables directement avec `utcnow()`.

    Returns:
        AsyncIOMotorClient: Client MongoDB asynchrone.
    """
    global _client
    if _client is None:
        settings = get_settings()
        _client = AsyncIOMotorClient(settings.mongodb_uri, tz_aware=True)
    return _client


def get_db() -> AsyncIOMotorDatabase:
    """Retourne la base configurée (`settings.mongodb_db`)."""
    return get_client()[get_settings().mongodb_db]


async def get_collection(name: str) -> AsyncIOMotorCollection:
    """Retourne une collection MongoDB par son nom.

    Description:
        Accède à `db[name]` et renvoie l'objet collection. Si la collection n'existe pas
        encore côté serveur, MongoDB la créera à la première insertion.

    Args:
        name (str): Nom de la collection (ex. "users", "tasks").

    Returns:
        AsyncIOMotorCollection: Instance de collection MongoDB asynchrone.
    """
    return get_db()[name]


def close_client() -> None:
    """Ferme le client partagé (shutdown applicatif)."""
    global _client
    if _client is not None:
        _client.close()
        _client = None
